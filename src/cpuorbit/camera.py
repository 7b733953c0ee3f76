"""Orbit camera state and its view-projection transform."""

from dataclasses import dataclass, replace

import numpy as np

from cpuorbit.numeric import (
    CLIP_SPACE_CORRECTION,
    look_at,
    normalize_degrees,
    perspective,
    rotation_y,
    rotation_z,
)

Vector3 = tuple[float, float, float]

ORBIT_AXIS = np.array([1.0, 0.0, 0.0])
MIN_EYE_DISTANCE = 1e-3  # Keeps the view defined when radius reaches 0


@dataclass(slots=True, frozen=True)
class OrbitCameraState:
    """
    Camera placed on a sphere around a fixed target.

    yaw turns around the world Y axis, tilt raises the camera out of the
    XZ plane. Both are degrees in [0, 360). Instances are immutable; every
    change returns a new, normalized state.
    """

    yaw: float = 0.0
    tilt: float = 30.0
    radius: float = 15.0
    target: Vector3 = (0.0, 0.0, 0.0)
    up: Vector3 = (0.0, 1.0, 0.0)
    angular_velocity: float = 0.0  # Degrees per second added to yaw
    aspect: float = 1.0
    fovy: float = 45.0
    znear: float = 0.1
    zfar: float = 100.0

    @classmethod
    def for_viewport(cls, width: float, height: float) -> "OrbitCameraState":
        return cls().resized(width, height)

    def normalized(self) -> "OrbitCameraState":
        """Wrap angles and clamp radius; idempotent."""
        return replace(
            self,
            yaw=normalize_degrees(self.yaw),
            tilt=normalize_degrees(self.tilt),
            radius=max(0.0, self.radius),
        )

    def evolve(self, **changes) -> "OrbitCameraState":
        """Copy with changes applied, then normalized."""
        return replace(self, **changes).normalized()

    def resized(self, width: float, height: float) -> "OrbitCameraState":
        """New aspect ratio only; a zero-sized viewport is ignored."""
        if width <= 0 or height <= 0:
            return self
        return replace(self, aspect=width / height)

    def orbit_rotation(self) -> np.ndarray:
        return rotation_y(self.yaw) @ rotation_z(self.tilt)

    def eye_position(self) -> np.ndarray:
        distance = max(self.radius, MIN_EYE_DISTANCE)
        return np.asarray(self.target) + self.orbit_rotation() @ (ORBIT_AXIS * distance)

    def view_matrix(self) -> np.ndarray:
        eye = self.eye_position()
        target = np.asarray(self.target, dtype=np.float64)
        try:
            return look_at(eye, target, np.asarray(self.up, dtype=np.float64))
        except ValueError:
            # Looking straight along `up`: use the orbit frame's own up axis.
            frame_up = self.orbit_rotation() @ np.array([0.0, 1.0, 0.0])
            return look_at(eye, target, frame_up)

    def projection_matrix(self) -> np.ndarray:
        return perspective(self.fovy, self.aspect, self.znear, self.zfar)

    def view_projection(self) -> np.ndarray:
        """Clip-space corrected projection * view, as a 4x4 float64 array."""
        return CLIP_SPACE_CORRECTION @ self.projection_matrix() @ self.view_matrix()
