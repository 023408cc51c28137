"""
Exceptions raised by the field engine.
"""

from typing import Optional, Tuple


class WFCError(Exception):
    """Base class for all field engine errors."""


class InvalidCollapseRequest(WFCError, ValueError):
    """The driver asked for a placement that is not currently possible.

    Raised before anything is mutated, so the grid is unchanged.
    """

    def __init__(self, position: Tuple[int, int], tile_id: Optional[str], reason: str):
        self.position = position
        self.tile_id = tile_id
        self.reason = reason
        super().__init__(f"Cannot collapse {position} to '{tile_id}': {reason}")


class Contradiction(WFCError):
    """A cell ran out of candidates during propagation."""

    def __init__(self, position: Tuple[int, int], source: Optional[Tuple[int, int]] = None):
        self.position = position
        self.source = source
        message = f"No candidates left for cell {position}"
        if source is not None:
            message += f" (propagating from {source})"
        super().__init__(message)


class UnknownTileType(WFCError, KeyError):
    """Tile id is not registered in the catalog."""

    def __init__(self, tile_id: str):
        self.tile_id = tile_id
        super().__init__(tile_id)

    def __str__(self) -> str:
        return f"Unknown tile type: '{self.tile_id}'"


class PropagationLimitExceeded(WFCError):
    """A propagation pass shrank cells more often than the candidate sets allow."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Propagation exceeded {limit} shrink events")
