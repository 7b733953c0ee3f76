"""Input events delivered by the windowing layer."""

from dataclasses import dataclass
from enum import Enum


class NamedKey(Enum):
    """Keys the camera understands, plus the quit keys it leaves alone."""

    ARROW_UP = "up"
    ARROW_DOWN = "down"
    ARROW_LEFT = "left"
    ARROW_RIGHT = "right"
    SPACE = "space"
    SHIFT = "shift"
    ESCAPE = "escape"
    Q = "q"

    @classmethod
    def from_name(cls, name: str) -> "NamedKey | None":
        """Look up a key by its name, None for keys outside the enumeration."""
        try:
            return cls(name.lower())
        except ValueError:
            return None


class MouseButton(Enum):
    """Mouse buttons; numbering follows the terminal convention."""

    PRIMARY = 1
    MIDDLE = 2
    SECONDARY = 3


@dataclass(slots=True, frozen=True)
class LineDelta:
    """Wheel motion in lines (notched wheels)."""

    x: float
    y: float


@dataclass(slots=True, frozen=True)
class PixelDelta:
    """Wheel motion in pixels (touchpads)."""

    x: float
    y: float


@dataclass(slots=True, frozen=True)
class KeyEvent:
    key: NamedKey | None
    pressed: bool


@dataclass(slots=True, frozen=True)
class MouseButtonEvent:
    button: MouseButton
    pressed: bool


@dataclass(slots=True, frozen=True)
class CursorMoved:
    """Absolute cursor position in pixels (or cells)."""

    x: float
    y: float
    at: float  # Monotonic seconds


@dataclass(slots=True, frozen=True)
class CursorLeft:
    pass


@dataclass(slots=True, frozen=True)
class MouseWheel:
    delta: LineDelta | PixelDelta


InputEvent = KeyEvent | MouseButtonEvent | CursorMoved | CursorLeft | MouseWheel
