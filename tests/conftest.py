import os

# Keep test runs from writing daily log files; must happen before georouting is imported
os.environ.setdefault('LOG_DIR', '')
os.environ.pop('SERVICE_AREA', None)

import pytest  # noqa: E402

from georouting.models.geometry import Coordinate  # noqa: E402
from georouting.stores import MemoryLineStore  # noqa: E402

# Direct-edge scenario vertices (San Salvador)
A = Coordinate(13.7466, -89.6759)
B = Coordinate(13.7470, -89.6760)

GRID_LAT = 13.70
GRID_LON = -89.20
GRID_STEP = 0.001


def grid_point(row: int, col: int) -> Coordinate:
    return Coordinate(round(GRID_LAT + row * GRID_STEP, 6), round(GRID_LON + col * GRID_STEP, 6))


def grid_segments(size: int = 5):
    """Rows and columns of a size x size street grid, one segment per street"""
    segments = []
    for row in range(size):
        segments.append([grid_point(row, col) for col in range(size)])
    for col in range(size):
        segments.append([grid_point(row, col) for row in range(size)])
    return segments


@pytest.fixture
def grid_store():
    return MemoryLineStore(grid_segments())


@pytest.fixture
def direct_edge_store():
    return MemoryLineStore([[A, B]])
