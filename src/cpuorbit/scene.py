"""Placement of per-core columns and projection to screen cells."""

import math

import numpy as np

from cpuorbit.numeric import EPSILON

CORE_SPACING = 2.0


def core_grid_positions(ncpus: int, spacing: float = CORE_SPACING) -> np.ndarray:
    """
    Centre positions of ncpus cores on a square grid in the XZ plane.

    Cores fill rows of ceil(sqrt(ncpus)); the grid is centred on the origin.
    """
    if ncpus <= 0:
        return np.zeros((0, 3))
    per_row = math.ceil(math.sqrt(ncpus))
    offset = (per_row - 1) * spacing / 2.0
    positions = np.zeros((ncpus, 3))
    for index in range(ncpus):
        positions[index, 0] = spacing * (index % per_row) - offset
        positions[index, 2] = spacing * (index // per_row) - offset
    return positions


def project_points(
    matrix: np.ndarray, points: np.ndarray, width: int, height: int
) -> list[tuple[int, int, float] | None]:
    """
    Project world points to (column, row, depth) screen cells.

    Points behind the camera or outside the depth range map to None.
    Cells may fall outside the viewport; callers clip.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    clip = homogeneous @ np.asarray(matrix).T

    projected: list[tuple[int, int, float] | None] = []
    for x, y, z, w in clip:
        if w <= EPSILON:
            projected.append(None)
            continue
        depth = z / w
        if not 0.0 <= depth <= 1.0:
            projected.append(None)
            continue
        column = math.floor((x / w + 1.0) / 2.0 * width)
        row = math.floor((1.0 - y / w) / 2.0 * height)
        projected.append((column, row, depth))
    return projected
