"""
Weighted selection of a tile type from a candidate set.
"""

import random
from typing import Iterable, List, Optional

from .tile import TileType


def build_pool(candidates: Iterable[TileType]) -> List[TileType]:
    """
    Flatten candidates into a selection pool.

    A tile with weight w appears w times. Only the given candidates are
    used, so an eliminated tile can never be drawn.
    """
    pool = []
    for tile in candidates:
        pool.extend([tile] * tile.weight)
    return pool


def pick_weighted(candidates: Iterable[TileType], rng: Optional[random.Random] = None) -> TileType:
    """
    Choose a tile type, weighted by tile weight.

    Args:
        candidates: Non-empty collection of tile types
        rng: Randomness source with a `choice` method (defaults to `random`)

    Returns:
        The chosen tile type

    Raises:
        ValueError: If there are no candidates
    """
    candidates = list(candidates)
    if not candidates:
        raise ValueError("No possibilities to choose from")

    # Singleton is deterministic, no randomness consumed
    if len(candidates) == 1:
        return candidates[0]

    if rng is None:
        rng = random
    return rng.choice(build_pool(candidates))
