"""Input state machine driving the orbit camera."""

import logging
from dataclasses import dataclass, replace

import numpy as np

from cpuorbit.buffers import BufferSink
from cpuorbit.camera import OrbitCameraState
from cpuorbit.events import (
    CursorLeft,
    CursorMoved,
    InputEvent,
    KeyEvent,
    LineDelta,
    MouseButton,
    MouseButtonEvent,
    MouseWheel,
    NamedKey,
)
from cpuorbit.numeric import column_major_bytes

logger = logging.getLogger(__name__)

VELOCITY_EPSILON = 1e-4  # Spin slower than this (deg/s) stops

KEY_FLAGS: dict[NamedKey, str] = {
    NamedKey.ARROW_UP: "forward",
    NamedKey.ARROW_DOWN: "backward",
    NamedKey.ARROW_LEFT: "left",
    NamedKey.ARROW_RIGHT: "right",
    NamedKey.SPACE: "up",
    NamedKey.SHIFT: "down",
}


@dataclass(slots=True, frozen=True)
class CameraSettings:
    """Tunables for camera motion."""

    speed: float = 15.0  # Radius units per second while zoom keys are held
    angular_speed: float = 180.0  # Degrees per second while yaw keys are held
    distance_per_pixel: float = 0.05
    distance_per_line: float = 1.0
    degrees_per_pixel: float = 0.5
    fling_gain: float = 2.0
    velocity_decay: float = 0.999  # Multiplier per decay_reference_dt
    decay_reference_dt: float = 1.0 / 60.0


@dataclass(slots=True, frozen=True)
class InputState:
    """Held keys, drag flag and the last cursor position seen."""

    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False
    up: bool = False
    down: bool = False
    dragging: bool = False
    cursor: tuple[float, float] | None = None
    cursor_at: float | None = None


def apply_key_event(inputs: InputState, event: KeyEvent) -> tuple[InputState, bool]:
    """Set or clear the flag for a directional key; other keys are unhandled."""
    flag = KEY_FLAGS.get(event.key) if event.key is not None else None
    if flag is None:
        return inputs, False
    return replace(inputs, **{flag: event.pressed}), True


def apply_mouse_button(inputs: InputState, event: MouseButtonEvent) -> tuple[InputState, bool]:
    """The secondary button starts and ends a drag."""
    if event.button is not MouseButton.SECONDARY:
        return inputs, False
    if event.pressed:
        return replace(inputs, dragging=True), True
    return replace(inputs, dragging=False, cursor=None, cursor_at=None), True


def apply_cursor_left(inputs: InputState) -> InputState:
    """The cursor leaving the window ends any drag."""
    return replace(inputs, dragging=False, cursor=None, cursor_at=None)


def apply_drag(
    camera: OrbitCameraState,
    inputs: InputState,
    event: CursorMoved,
    settings: CameraSettings,
) -> tuple[OrbitCameraState, InputState, bool]:
    """
    Track the cursor and, while dragging, turn motion into camera change.

    Vertical motion tilts the camera directly. Horizontal motion is added
    to the angular velocity instead of yaw, so a quick drag flings the
    camera into a spin that decays over time.
    """
    previous = inputs.cursor
    inputs = replace(inputs, cursor=(event.x, event.y), cursor_at=event.at)
    if not inputs.dragging or previous is None:
        return camera, inputs, inputs.dragging

    dx = event.x - previous[0]
    dy = event.y - previous[1]
    camera = camera.evolve(
        tilt=camera.tilt + dy * settings.degrees_per_pixel,
        angular_velocity=camera.angular_velocity
        - dx * settings.degrees_per_pixel * settings.fling_gain,
    )
    return camera, inputs, True


def apply_scroll(
    camera: OrbitCameraState, event: MouseWheel, settings: CameraSettings
) -> OrbitCameraState:
    """Scrolling forward (positive y) moves the camera closer."""
    delta = event.delta
    if isinstance(delta, LineDelta):
        amount = delta.y * settings.distance_per_line
    else:
        amount = delta.y * settings.distance_per_pixel
    return camera.evolve(radius=max(0.0, camera.radius - amount))


def tick(
    camera: OrbitCameraState, inputs: InputState, dt: float, settings: CameraSettings
) -> OrbitCameraState:
    """
    Advance the camera by dt seconds.

    Held zoom keys move the radius, held yaw keys turn the camera, and the
    angular velocity decays and is added to yaw. Key-driven and
    velocity-driven yaw apply additively in the same tick.
    """
    dt = max(0.0, dt)
    radius = camera.radius
    yaw = camera.yaw

    if inputs.forward:
        radius = max(0.0, radius - settings.speed * dt)
    if inputs.backward:
        radius += settings.speed * dt

    if inputs.right:
        yaw += settings.angular_speed * dt
    if inputs.left:
        yaw -= settings.angular_speed * dt

    velocity = camera.angular_velocity
    if velocity:
        velocity *= settings.velocity_decay ** (dt / settings.decay_reference_dt)
        if abs(velocity) < VELOCITY_EPSILON:
            velocity = 0.0
        yaw += velocity * dt

    return camera.evolve(radius=radius, yaw=yaw, angular_velocity=velocity)


class CameraController:
    """
    Owns the camera and input state and applies events and frame ticks.

    Every transition is delegated to the pure functions above; this class
    only keeps the current values and publishes the matrix.
    """

    def __init__(
        self,
        camera: OrbitCameraState | None = None,
        settings: CameraSettings | None = None,
        sink: BufferSink | None = None,
    ) -> None:
        self.camera = camera if camera is not None else OrbitCameraState()
        self.settings = settings if settings is not None else CameraSettings()
        self.inputs = InputState()
        self._sink = sink

    def process_event(self, event: InputEvent) -> bool:
        """
        Apply one input event.

        Returns:
            True if the event was consumed, False for events the camera
            does not use (the caller may handle those itself).
        """
        if isinstance(event, KeyEvent):
            self.inputs, handled = apply_key_event(self.inputs, event)
            return handled
        if isinstance(event, MouseButtonEvent):
            self.inputs, handled = apply_mouse_button(self.inputs, event)
            return handled
        if isinstance(event, CursorMoved):
            self.camera, self.inputs, handled = apply_drag(
                self.camera, self.inputs, event, self.settings
            )
            return handled
        if isinstance(event, CursorLeft):
            self.inputs = apply_cursor_left(self.inputs)
            return True
        if isinstance(event, MouseWheel):
            self.camera = apply_scroll(self.camera, event, self.settings)
            return True
        logger.debug("Ignoring unknown input event %r", event)
        return False

    def resize(self, width: float, height: float) -> None:
        self.camera = self.camera.resized(width, height)

    def update(self, dt: float) -> np.ndarray:
        """Advance by dt seconds and publish the view-projection matrix."""
        self.camera = tick(self.camera, self.inputs, dt, self.settings)
        matrix = self.camera.view_projection()
        if self._sink is not None:
            self._sink.write(column_major_bytes(matrix))
        return matrix
