"""Shared numeric helpers: angles, rotations and projection matrices."""

import math

import numpy as np

FULL_TURN = 360.0
EPSILON = 1e-6

# Remaps OpenGL clip depth [-w, w] to the [0, w] range used by
# Vulkan/Metal/D3D style backends: z' = 0.5 * z + 0.5 * w.
CLIP_SPACE_CORRECTION = np.array(
    [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 0.5, 0.5],
        [0.0, 0.0, 0.0, 1.0],
    ],
    dtype=np.float64,
)
CLIP_SPACE_CORRECTION.setflags(write=False)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def normalize_degrees(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = angle % FULL_TURN
    # Tiny negative inputs round up to exactly 360.0
    if wrapped >= FULL_TURN:
        return 0.0
    return wrapped


def rotation_y(degrees: float) -> np.ndarray:
    """3x3 right-handed rotation about the Y axis."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def rotation_z(degrees: float) -> np.ndarray:
    """3x3 right-handed rotation about the Z axis."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def look_at(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """
    Right-handed view matrix looking from eye towards target.

    Raises:
        ValueError: If eye equals target or up is parallel to the view direction.
    """
    forward = np.asarray(target, dtype=np.float64) - np.asarray(eye, dtype=np.float64)
    distance = np.linalg.norm(forward)
    if distance < EPSILON:
        raise ValueError("eye and target coincide")
    forward = forward / distance

    side = np.cross(forward, up)
    side_length = np.linalg.norm(side)
    if side_length < EPSILON:
        raise ValueError("up vector is parallel to the view direction")
    side = side / side_length
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -np.dot(side, eye)
    view[1, 3] = -np.dot(true_up, eye)
    view[2, 3] = np.dot(forward, eye)
    return view


def perspective(fovy: float, aspect: float, znear: float, zfar: float) -> np.ndarray:
    """OpenGL style perspective projection; fovy in degrees."""
    if aspect <= 0.0 or znear <= 0.0 or zfar <= znear:
        raise ValueError(f"invalid projection: aspect={aspect} znear={znear} zfar={zfar}")
    f = 1.0 / math.tan(math.radians(fovy) / 2.0)
    projection = np.zeros((4, 4))
    projection[0, 0] = f / aspect
    projection[1, 1] = f
    projection[2, 2] = (zfar + znear) / (znear - zfar)
    projection[2, 3] = 2.0 * zfar * znear / (znear - zfar)
    projection[3, 2] = -1.0
    return projection


def column_major_bytes(matrix: np.ndarray) -> bytes:
    """Pack a 4x4 matrix as 16 float32 values, column after column."""
    return np.asarray(matrix, dtype=np.float32).tobytes(order="F")
