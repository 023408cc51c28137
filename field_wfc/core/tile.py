"""
Data classes for tile types and the tile catalog.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Tuple

from .errors import UnknownTileType


Color = Tuple[int, int, int]


@dataclass(frozen=True)
class TileType:
    """A tile type with its adjacency rule set and selection weight."""
    id: str
    allowed_neighbors: FrozenSet[str] = field(default_factory=frozenset)
    weight: int = 1
    color: Color = (255, 255, 255)  # Rendering hint, not used by constraint logic

    def __post_init__(self):
        # Accept any iterable of ids for convenience
        if not isinstance(self.allowed_neighbors, frozenset):
            object.__setattr__(self, 'allowed_neighbors', frozenset(self.allowed_neighbors))
        if isinstance(self.weight, bool) or not isinstance(self.weight, int):
            raise ValueError(f"Tile '{self.id}' weight must be an integer, got {self.weight!r}")
        if self.weight < 1:
            raise ValueError(f"Tile '{self.id}' weight must be >= 1, got {self.weight}")

    def accepts(self, neighbor_id: str) -> bool:
        """Whether `neighbor_id` may sit next to this tile."""
        return neighbor_id in self.allowed_neighbors

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'allowed_neighbors': sorted(self.allowed_neighbors),
            'weight': self.weight,
            'color': list(self.color)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TileType':
        return cls(
            id=data['id'],
            allowed_neighbors=frozenset(data.get('allowed_neighbors', [])),
            weight=data.get('weight', 1),
            color=tuple(data.get('color', (255, 255, 255)))
        )


class TileCatalog:
    """
    Static registry of tile types.

    Order of registration is kept and is the order every cell starts with
    as its candidate set.
    """

    def __init__(self, tiles: Iterable[TileType], version: str = "1.0"):
        self.version = version
        self._tiles: Dict[str, TileType] = {}

        for tile in tiles:
            if tile.id in self._tiles:
                raise ValueError(f"Tile '{tile.id}' already exists")
            self._tiles[tile.id] = tile

        if not self._tiles:
            raise ValueError("Catalog must contain at least one tile type")

        # Every rule must point at a registered tile
        for tile in self._tiles.values():
            for neighbor_id in tile.allowed_neighbors:
                if neighbor_id not in self._tiles:
                    raise UnknownTileType(neighbor_id)

        self._order: Tuple[TileType, ...] = tuple(self._tiles.values())

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[TileType]:
        return iter(self._order)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._tiles

    def __repr__(self) -> str:
        return f"TileCatalog({list(self._tiles)})"

    def all_tile_types(self) -> Tuple[TileType, ...]:
        """All tile types in registration order."""
        return self._order

    def tile_ids(self) -> List[str]:
        return [t.id for t in self._order]

    def rule_for(self, tile_id: str) -> TileType:
        """Look up a tile type by id."""
        try:
            return self._tiles[tile_id]
        except KeyError:
            raise UnknownTileType(tile_id) from None

    def allows(self, tile_id: str, neighbor_id: str) -> bool:
        """Check if neighbor_id may be placed next to tile_id."""
        return self.rule_for(tile_id).accepts(neighbor_id)

    def color_of(self, tile_id: str) -> Color:
        return self.rule_for(tile_id).color

    def to_dict(self) -> dict:
        return {
            'version': self.version,
            'tiles': [t.to_dict() for t in self._order]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TileCatalog':
        return cls(
            [TileType.from_dict(t) for t in data.get('tiles', [])],
            version=data.get('version', '1.0')
        )


def default_catalog() -> TileCatalog:
    """
    Built-in terrain catalog.

    Terrains form bands (water - sand - grass - forest - mountain); each one
    accepts itself and the bands directly next to it.
    """
    return TileCatalog([
        TileType('water', {'water', 'sand'}, weight=2, color=(40, 90, 200)),
        TileType('sand', {'water', 'sand', 'grass'}, weight=1, color=(230, 210, 140)),
        TileType('grass', {'sand', 'grass', 'forest'}, weight=4, color=(90, 180, 70)),
        TileType('forest', {'grass', 'forest', 'mountain'}, weight=2, color=(30, 110, 40)),
        TileType('mountain', {'forest', 'mountain'}, weight=1, color=(130, 120, 110)),
    ])
