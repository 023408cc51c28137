"""
Field grid and constraint propagation.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from PySide6.QtCore import QObject, Signal

from .cell import FieldCell
from .errors import Contradiction, InvalidCollapseRequest, PropagationLimitExceeded
from .tile import Color, TileCatalog, TileType

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

# All 8 surrounding cells, in the order propagation visits them
NEIGHBOR_OFFSETS: Tuple[Position, ...] = (
    (1, 1), (0, 1), (-1, 1), (-1, 0),
    (-1, -1), (0, -1), (1, -1), (1, 0),
)


@dataclass(frozen=True)
class ResolvedTile:
    """A collapsed cell as seen by a renderer."""
    x: int
    y: int
    tile_id: str
    color: Color


@dataclass
class GridSnapshot:
    """Copy of every cell's candidates and placed flag."""
    width: int
    height: int
    cells: Dict[Position, Tuple[Tuple[str, ...], bool]] = field(default_factory=dict)


class FieldGrid(QObject):
    """
    2D field of cells with constraint propagation.

    Signals:
        cell_collapsed(x, y, tile_id): Emitted when a cell is placed
        cell_updated(x, y): Emitted when a cell loses candidates through propagation
        contradiction_found(x, y): Emitted when a cell runs out of candidates
    """

    cell_collapsed = Signal(int, int, str)
    cell_updated = Signal(int, int)
    contradiction_found = Signal(int, int)

    def __init__(
        self,
        width: int,
        height: int,
        catalog: TileCatalog,
        neighbor_offsets: Optional[Sequence[Position]] = None,
        parent=None
    ):
        super().__init__(parent)

        if width < 1 or height < 1:
            raise ValueError(f"Grid size must be positive, got {width}x{height}")

        if neighbor_offsets is None:
            neighbor_offsets = NEIGHBOR_OFFSETS
        elif sorted(neighbor_offsets) != sorted(NEIGHBOR_OFFSETS):
            raise ValueError("neighbor_offsets must be an ordering of the 8 surrounding offsets")

        self.catalog = catalog
        self.width = width
        self.height = height
        self.cells: Dict[Position, FieldCell] = {}
        self._neighbor_offsets: Tuple[Position, ...] = tuple(tuple(o) for o in neighbor_offsets)

        # Every cell starts with the whole catalog
        all_tiles = catalog.all_tile_types()
        for y in range(height):
            for x in range(width):
                self.cells[(x, y)] = FieldCell(x=x, y=y, candidates=all_tiles)

        logger.debug("Initialized %dx%d grid with %d tile types", width, height, len(catalog))

    # --- Queries ---

    def in_bounds(self, pos: Position) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def neighbors_of(self, pos: Position) -> List[Position]:
        """In-bounds positions around `pos`, in fixed order."""
        x, y = pos
        neighbors = []
        for dx, dy in self._neighbor_offsets:
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.width and 0 <= ny < self.height:
                neighbors.append((nx, ny))
        return neighbors

    def get_cell(self, pos: Position) -> Optional[FieldCell]:
        """Get cell state at position."""
        return self.cells.get(tuple(pos))

    def _require_cell(self, pos: Position) -> FieldCell:
        cell = self.cells.get(tuple(pos))
        if cell is None:
            raise IndexError(f"Position {pos} is outside the {self.width}x{self.height} grid")
        return cell

    def candidates_of(self, pos: Position) -> Tuple[TileType, ...]:
        return self._require_cell(pos).candidate_types()

    def candidate_ids_of(self, pos: Position) -> Tuple[str, ...]:
        return self._require_cell(pos).candidate_ids()

    def is_collapsed(self, pos: Position) -> bool:
        return self._require_cell(pos).is_collapsed

    def is_placed(self, pos: Position) -> bool:
        return self._require_cell(pos).placed

    def entropy(self, pos: Position) -> int:
        return self._require_cell(pos).entropy

    def cells_in_order(self) -> Iterator[FieldCell]:
        """Cells in raster order (row by row)."""
        for y in range(self.height):
            for x in range(self.width):
                yield self.cells[(x, y)]

    def placed_count(self) -> int:
        return sum(1 for c in self.cells.values() if c.placed)

    def collapsed_count(self) -> int:
        return sum(1 for c in self.cells.values() if c.is_collapsed)

    def is_complete(self) -> bool:
        """True once every cell has been placed."""
        return all(c.placed for c in self.cells.values())

    def lowest_entropy_positions(self) -> List[Position]:
        """Unplaced positions with the fewest candidates."""
        min_entropy = None
        positions = []
        for cell in self.cells_in_order():
            if cell.placed:
                continue
            if min_entropy is None or cell.entropy < min_entropy:
                min_entropy = cell.entropy
                positions = [cell.position]
            elif cell.entropy == min_entropy:
                positions.append(cell.position)
        return positions

    def resolved_tile(self, pos: Position) -> Optional[ResolvedTile]:
        cell = self._require_cell(pos)
        tile = cell.collapsed_tile
        if tile is None:
            return None
        return ResolvedTile(cell.x, cell.y, tile.id, tile.color)

    def resolved_tiles(self) -> List[ResolvedTile]:
        """Descriptors for every collapsed cell, in raster order."""
        return [
            ResolvedTile(cell.x, cell.y, cell.collapsed_tile.id, cell.collapsed_tile.color)
            for cell in self.cells_in_order()
            if cell.is_collapsed
        ]

    # --- Mutation ---

    def collapse(self, pos: Position, tile: Union[str, TileType]) -> ResolvedTile:
        """
        Place a tile at `pos` and propagate the consequences.

        Args:
            pos: (x, y) grid position
            tile: Tile id (or TileType) that must still be a candidate of the cell

        Returns:
            ResolvedTile for the placed cell

        Raises:
            InvalidCollapseRequest: Position outside the grid or tile not a candidate
            UnknownTileType: Tile id is not in the catalog
            Contradiction: Propagation emptied some cell
        """
        pos = tuple(pos)
        tile_id = tile.id if isinstance(tile, TileType) else tile

        cell = self.cells.get(pos)
        if cell is None:
            raise InvalidCollapseRequest(pos, tile_id, "position is outside the grid")

        tile_type = self.catalog.rule_for(tile_id)
        if not cell.has_candidate(tile_id):
            raise InvalidCollapseRequest(
                pos, tile_id, f"remaining candidates are {list(cell.candidate_ids())}"
            )

        cell.place(tile_type)
        logger.debug("Placed '%s' at %s", tile_id, pos)
        self.cell_collapsed.emit(pos[0], pos[1], tile_id)

        self.propagate_from(pos)

        return ResolvedTile(pos[0], pos[1], tile_type.id, tile_type.color)

    def propagate_from(self, pos: Position) -> int:
        """
        Prune neighbor candidates until nothing changes.

        A neighbor candidate survives if some remaining candidate of the
        propagating cell accepts it. Cells that shrink propagate in turn;
        cells already down to one candidate are never revisited.

        Returns:
            Number of cells shrunk during this pass
        """
        pos = tuple(pos)
        self._require_cell(pos)

        limit = self._shrink_limit()
        shrinks = 0

        stack = [pos]
        while stack:
            current = stack.pop()
            sources = self.cells[current].candidates

            for npos in self.neighbors_of(current):
                neighbor = self.cells[npos]
                if neighbor.is_collapsed:
                    continue

                survivors = [
                    t.id for t in neighbor.candidates
                    if any(s.accepts(t.id) for s in sources)
                ]
                if len(survivors) == neighbor.entropy:
                    continue

                if not survivors:
                    logger.warning("Contradiction at %s while propagating from %s", npos, current)
                    self.contradiction_found.emit(npos[0], npos[1])
                    raise Contradiction(npos, current)

                shrinks += 1
                if shrinks > limit:
                    raise PropagationLimitExceeded(limit)

                old_entropy = neighbor.entropy
                neighbor.restrict_to(survivors)
                logger.debug("Cell %s: %d -> %d candidates", npos, old_entropy, neighbor.entropy)
                self.cell_updated.emit(npos[0], npos[1])

                stack.append(npos)

        return shrinks

    def _shrink_limit(self) -> int:
        """Most shrink events a propagation pass can perform from the current state."""
        # Every shrink removes at least one candidate somewhere
        return sum(c.entropy - 1 for c in self.cells.values())

    # --- Snapshots ---

    def snapshot(self) -> GridSnapshot:
        return GridSnapshot(
            width=self.width,
            height=self.height,
            cells={pos: (c.candidate_ids(), c.placed) for pos, c in self.cells.items()}
        )

    def restore(self, snapshot: GridSnapshot):
        """
        Restore cell state from a snapshot taken on a grid of the same size.

        No propagation is run.
        """
        if (snapshot.width, snapshot.height) != (self.width, self.height):
            raise ValueError(
                f"Snapshot is {snapshot.width}x{snapshot.height}, "
                f"grid is {self.width}x{self.height}"
            )

        for pos, cell in self.cells.items():
            if pos not in snapshot.cells:
                raise ValueError(f"Snapshot has no state for cell {pos}")
            candidate_ids, placed = snapshot.cells[pos]
            if not candidate_ids:
                raise ValueError(f"Snapshot has no candidates for cell {pos}")

            candidates = tuple(self.catalog.rule_for(tid) for tid in candidate_ids)
            if candidates != cell.candidates or placed != cell.placed:
                cell.candidates = candidates
                cell.placed = placed
                self.cell_updated.emit(pos[0], pos[1])


def initialize_grid(width: int, height: int, catalog: TileCatalog) -> FieldGrid:
    """Create a grid where every cell can hold any tile of the catalog."""
    return FieldGrid(width, height, catalog)
