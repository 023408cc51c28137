"""
State of a single field cell.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .errors import Contradiction
from .tile import TileType


@dataclass
class FieldCell:
    """
    Candidate set for one grid position.

    The cell only stores state; every decision about what to remove is
    made by the grid.
    """
    x: int
    y: int
    candidates: Tuple[TileType, ...] = field(default_factory=tuple)
    placed: bool = False  # Locked by an explicit collapse request

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def is_collapsed(self) -> bool:
        return len(self.candidates) == 1

    @property
    def entropy(self) -> int:
        """Number of remaining candidates (lower = more constrained)."""
        return len(self.candidates)

    @property
    def collapsed_tile(self) -> Optional[TileType]:
        if self.is_collapsed:
            return self.candidates[0]
        return None

    def candidate_types(self) -> Tuple[TileType, ...]:
        return self.candidates

    def candidate_ids(self) -> Tuple[str, ...]:
        return tuple(t.id for t in self.candidates)

    def has_candidate(self, tile_id: str) -> bool:
        return any(t.id == tile_id for t in self.candidates)

    def restrict_to(self, tile_ids: Iterable[str]) -> bool:
        """
        Keep only the candidates whose id is in `tile_ids`.

        Candidate order is preserved. Returns True if anything was removed.

        Raises:
            ValueError: If `tile_ids` names a tile that is not a candidate
            Contradiction: If no candidate would remain; the cell is left as is
        """
        keep_ids = set(tile_ids)
        unknown = keep_ids - set(self.candidate_ids())
        if unknown:
            raise ValueError(
                f"Cell {self.position} cannot gain candidates: {sorted(unknown)}"
            )
        if not keep_ids:
            raise Contradiction(self.position)

        remaining = tuple(t for t in self.candidates if t.id in keep_ids)
        if len(remaining) == len(self.candidates):
            return False
        self.candidates = remaining
        return True

    def place(self, tile: TileType):
        """Lock the cell to a single tile."""
        self.candidates = (tile,)
        self.placed = True

    def copy(self) -> 'FieldCell':
        return FieldCell(x=self.x, y=self.y, candidates=self.candidates, placed=self.placed)
