"""Host-side stand-ins for GPU-visible buffers."""

from typing import Protocol

import numpy as np

FLOAT_SIZE = 4
MATRIX_BYTES = 16 * FLOAT_SIZE


class BufferSink(Protocol):
    """Destination the per-frame values are written into."""

    def write(self, data: bytes, offset: int = 0) -> None: ...


class HostBuffer:
    """Fixed-capacity, zero-initialised byte buffer."""

    def __init__(self, capacity: int, label: str = "") -> None:
        if capacity <= 0:
            raise ValueError("buffer capacity must be positive")
        self.label = label
        self._data = bytearray(capacity)
        self.writes = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def write(self, data: bytes, offset: int = 0) -> None:
        end = offset + len(data)
        if offset < 0 or end > len(self._data):
            raise ValueError(
                f"write of {len(data)} bytes at {offset} overflows "
                f"{self.label or 'buffer'} of {len(self._data)} bytes"
            )
        self._data[offset:end] = data
        self.writes += 1

    def read(self) -> bytes:
        return bytes(self._data)

    def as_floats(self, count: int | None = None) -> np.ndarray:
        """Read the contents back as float32 values."""
        values = np.frombuffer(bytes(self._data), dtype=np.float32)
        return values if count is None else values[:count]


def usage_buffer(max_cores: int) -> HostBuffer:
    """Buffer holding one float32 usage value per core."""
    return HostBuffer(max_cores * FLOAT_SIZE, label="CPU usage")


def camera_buffer() -> HostBuffer:
    """Buffer holding one column-major 4x4 float32 matrix."""
    return HostBuffer(MATRIX_BYTES, label="Camera")
