from .errors import (
    WFCError, InvalidCollapseRequest, Contradiction,
    UnknownTileType, PropagationLimitExceeded
)
from .tile import TileType, TileCatalog, default_catalog
from .selector import build_pool, pick_weighted
from .cell import FieldCell
from .grid import FieldGrid, GridSnapshot, ResolvedTile, NEIGHBOR_OFFSETS, initialize_grid
from .settings import SolverSettings
from .solver import CollapseSolver, EngineState
from .catalog_loader import CatalogLoader
from .map_saver import MapSaver
from .validation import validate_catalog, validate_grid, CatalogValidation

__all__ = [
    'WFCError', 'InvalidCollapseRequest', 'Contradiction',
    'UnknownTileType', 'PropagationLimitExceeded',
    'TileType', 'TileCatalog', 'default_catalog',
    'build_pool', 'pick_weighted',
    'FieldCell',
    'FieldGrid', 'GridSnapshot', 'ResolvedTile', 'NEIGHBOR_OFFSETS', 'initialize_grid',
    'SolverSettings',
    'CollapseSolver', 'EngineState',
    'CatalogLoader', 'MapSaver',
    'validate_catalog', 'validate_grid', 'CatalogValidation'
]
