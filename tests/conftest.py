"""Shared pytest fixtures for field_wfc tests."""

import random

import pytest
from PySide6.QtCore import QCoreApplication

from field_wfc.core import FieldGrid, TileCatalog, TileType, default_catalog


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One Qt application for the whole session (needed for timers)."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


# =============================================================================
# Catalogs
# =============================================================================

@pytest.fixture
def open_catalog() -> TileCatalog:
    """A and B, each accepting both."""
    return TileCatalog([
        TileType('A', {'A', 'B'}, color=(255, 0, 0)),
        TileType('B', {'A', 'B'}, color=(0, 0, 255)),
    ])


@pytest.fixture
def strict_catalog() -> TileCatalog:
    """A and B accept both, C only accepts itself."""
    return TileCatalog([
        TileType('A', {'A', 'B'}),
        TileType('B', {'A', 'B'}),
        TileType('C', {'C'}),
    ])


@pytest.fixture
def checker_catalog() -> TileCatalog:
    """Black and white that only accept each other (contradicts on diagonals)."""
    return TileCatalog([
        TileType('black', {'white'}, color=(0, 0, 0)),
        TileType('white', {'black'}, color=(255, 255, 255)),
    ])


@pytest.fixture
def terrain_catalog() -> TileCatalog:
    return default_catalog()


# =============================================================================
# Grids
# =============================================================================

@pytest.fixture
def open_grid(open_catalog: TileCatalog) -> FieldGrid:
    return FieldGrid(3, 3, open_catalog)


@pytest.fixture
def strict_grid(strict_catalog: TileCatalog) -> FieldGrid:
    return FieldGrid(3, 3, strict_catalog)


@pytest.fixture
def terrain_grid(terrain_catalog: TileCatalog) -> FieldGrid:
    return FieldGrid(7, 7, terrain_catalog)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
