"""
Validation utilities for catalogs and solved fields.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple

from .tile import TileCatalog

if TYPE_CHECKING:
    from .grid import FieldGrid

logger = logging.getLogger(__name__)


@dataclass
class CatalogValidation:
    """Validation result for a tile catalog."""
    orphan_tiles: List[str] = field(default_factory=list)  # tiles that allow no neighbor at all
    asymmetric_pairs: List[Tuple[str, str]] = field(default_factory=list)  # (a, b): a allows b, b not a
    self_incompatible: List[str] = field(default_factory=list)  # tiles that reject themselves

    @property
    def is_valid(self) -> bool:
        return len(self.orphan_tiles) == 0

    @property
    def error_count(self) -> int:
        return len(self.orphan_tiles)

    @property
    def warning_count(self) -> int:
        return len(self.asymmetric_pairs) + len(self.self_incompatible)

    def get_tiles_with_issues(self) -> List[str]:
        """Get list of tile IDs that have any issues."""
        issues = set(self.orphan_tiles) | set(self.self_incompatible)
        for a, b in self.asymmetric_pairs:
            issues.add(a)
            issues.add(b)
        return sorted(issues)


def validate_catalog(catalog: TileCatalog) -> CatalogValidation:
    """
    Check a catalog for rules that are likely mistakes.

    Asymmetric and self-rejecting rules are legal and only reported as
    warnings. A tile that allows no neighbor can only ever be placed on a
    1x1 field, so it counts as an error.
    """
    result = CatalogValidation()

    for tile in catalog:
        if not tile.allowed_neighbors:
            result.orphan_tiles.append(tile.id)
            continue

        if not tile.accepts(tile.id):
            result.self_incompatible.append(tile.id)

        for neighbor_id in sorted(tile.allowed_neighbors):
            if neighbor_id != tile.id and not catalog.allows(neighbor_id, tile.id):
                result.asymmetric_pairs.append((tile.id, neighbor_id))

    if not result.is_valid:
        logger.warning("Catalog has tiles without neighbors: %s", result.orphan_tiles)

    return result


def validate_grid(grid: 'FieldGrid') -> List[str]:
    """
    Validate all adjacencies between collapsed cells.

    Each adjacent pair is checked once. Propagation only enforces the rule
    of whichever cell was placed first, so a pair is fine when either tile
    allows the other.

    Returns list of error messages (empty if valid).
    """
    errors = []

    for cell in grid.cells_in_order():
        tile = cell.collapsed_tile
        if tile is None:
            continue

        for npos in grid.neighbors_of(cell.position):
            # Only neighbors later in raster order
            if (npos[1], npos[0]) < (cell.y, cell.x):
                continue

            neighbor_tile = grid.get_cell(npos).collapsed_tile
            if neighbor_tile is None:
                continue

            if not tile.accepts(neighbor_tile.id) and not neighbor_tile.accepts(tile.id):
                errors.append(
                    f"({cell.x},{cell.y}) '{tile.id}' and ({npos[0]},{npos[1]}) "
                    f"'{neighbor_tile.id}' do not allow each other"
                )

    if errors:
        logger.warning("Field has %d adjacency errors", len(errors))

    return errors
