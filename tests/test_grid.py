"""Tests for field_wfc.core.grid module."""

import random

import pytest

from field_wfc.core import (
    Contradiction, FieldGrid, InvalidCollapseRequest, NEIGHBOR_OFFSETS,
    PropagationLimitExceeded, ResolvedTile, TileCatalog, TileType, UnknownTileType,
    initialize_grid,
)


def chebyshev(a, b):
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


def candidate_map(grid):
    return {pos: cell.candidate_ids() for pos, cell in grid.cells.items()}


class TestGridSetup:
    """Tests for grid construction and neighbor lookup."""

    def test_every_cell_starts_with_full_catalog(self, strict_catalog):
        grid = initialize_grid(4, 2, strict_catalog)
        assert len(grid.cells) == 8
        for cell in grid.cells.values():
            assert cell.candidate_ids() == ('A', 'B', 'C')
            assert not cell.placed

    @pytest.mark.parametrize("width,height", [(0, 3), (3, 0), (-1, 2)])
    def test_invalid_size(self, open_catalog, width, height):
        with pytest.raises(ValueError):
            FieldGrid(width, height, open_catalog)

    def test_corner_has_three_neighbors(self, open_grid):
        for corner in [(0, 0), (2, 0), (0, 2), (2, 2)]:
            assert len(open_grid.neighbors_of(corner)) == 3

    def test_edge_has_five_neighbors(self, open_grid):
        for edge in [(1, 0), (0, 1), (2, 1), (1, 2)]:
            assert len(open_grid.neighbors_of(edge)) == 5

    def test_interior_has_eight_neighbors(self, terrain_grid):
        assert len(terrain_grid.neighbors_of((3, 3))) == 8

    def test_neighbor_order_is_fixed(self, terrain_grid):
        expected = [(3 + dx, 3 + dy) for dx, dy in NEIGHBOR_OFFSETS]
        assert terrain_grid.neighbors_of((3, 3)) == expected

    def test_single_cell_grid_has_no_neighbors(self, open_catalog):
        assert FieldGrid(1, 1, open_catalog).neighbors_of((0, 0)) == []

    def test_custom_neighbor_order_must_cover_all_offsets(self, open_catalog):
        with pytest.raises(ValueError):
            FieldGrid(3, 3, open_catalog, neighbor_offsets=[(1, 0), (0, 1)])

    def test_queries_outside_grid(self, open_grid):
        assert open_grid.get_cell((5, 5)) is None
        with pytest.raises(IndexError):
            open_grid.candidates_of((3, 0))


class TestCollapse:
    """Tests for placing tiles and the resulting propagation."""

    def test_open_catalog_prunes_nothing(self, open_grid):
        resolved = open_grid.collapse((1, 1), 'A')

        assert resolved == ResolvedTile(1, 1, 'A', (255, 0, 0))
        assert open_grid.is_collapsed((1, 1))
        assert open_grid.is_placed((1, 1))
        for pos in open_grid.neighbors_of((1, 1)):
            assert open_grid.candidate_ids_of(pos) == ('A', 'B')

    def test_exclusive_tile_narrows_neighbors(self, strict_grid):
        strict_grid.collapse((1, 1), 'C')

        for pos in strict_grid.neighbors_of((1, 1)):
            assert strict_grid.candidate_ids_of(pos) == ('C',)
            assert strict_grid.is_collapsed(pos)
            # Narrowed by propagation, not placed
            assert not strict_grid.is_placed(pos)

    def test_exclusive_tile_contradiction(self, strict_grid):
        """A neighbor that cannot hold C anymore has nothing left."""
        strict_grid.get_cell((2, 1)).restrict_to({'A', 'B'})

        with pytest.raises(Contradiction) as exc_info:
            strict_grid.collapse((1, 1), 'C')

        assert exc_info.value.position == (2, 1)
        assert exc_info.value.source == (1, 1)
        # No cell is ever left empty
        assert strict_grid.candidate_ids_of((2, 1)) == ('A', 'B')

    def test_contradiction_is_not_invalid_request(self):
        catalog = TileCatalog([TileType('A', {'A'}), TileType('X', set())])
        grid = FieldGrid(2, 1, catalog)
        with pytest.raises(Contradiction) as exc_info:
            grid.collapse((0, 0), 'X')
        assert not isinstance(exc_info.value, InvalidCollapseRequest)

    def test_rule_is_read_from_propagating_side(self):
        """Neighbor candidates survive if the placed tile lists them."""
        catalog = TileCatalog([TileType('A', {'A', 'B'}), TileType('B', {'A'})])
        grid = FieldGrid(3, 1, catalog)

        grid.collapse((0, 0), 'B')

        assert grid.candidate_ids_of((1, 0)) == ('A',)
        assert grid.candidate_ids_of((2, 0)) == ('A', 'B')

    def test_propagation_cascades(self, terrain_grid):
        terrain_grid.collapse((3, 3), 'water')

        bands = ['water', 'sand', 'grass', 'forest', 'mountain']
        for pos, cell in terrain_grid.cells.items():
            distance = chebyshev(pos, (3, 3))
            assert cell.candidate_ids() == tuple(bands[:distance + 1])

    def test_collapsed_neighbors_are_not_revisited(self):
        catalog = TileCatalog([TileType('A', {'A', 'B'}), TileType('B', {'B'})])
        grid = FieldGrid(3, 1, catalog)
        grid.get_cell((1, 0)).restrict_to({'A'})

        # B rejects A, but the singleton neighbor is left alone
        grid.collapse((2, 0), 'B')

        assert grid.candidate_ids_of((1, 0)) == ('A',)

    def test_raster_collapse_never_contradicts(self, open_catalog):
        grid = FieldGrid(5, 4, open_catalog)
        for cell in list(grid.cells_in_order()):
            tile_id = 'A' if (cell.x + cell.y) % 3 else 'B'
            grid.collapse(cell.position, tile_id)

        assert grid.is_complete()
        assert grid.collapsed_count() == 20
        assert all(grid.is_collapsed(pos) for pos in grid.cells)

    def test_accepts_tile_type_objects(self, open_grid, open_catalog):
        resolved = open_grid.collapse((0, 0), open_catalog.rule_for('B'))
        assert resolved.tile_id == 'B'


class TestInvalidRequests:
    """Rejected collapse requests leave the grid untouched."""

    def test_tile_not_a_candidate(self, strict_grid):
        strict_grid.collapse((0, 0), 'A')
        before = candidate_map(strict_grid)

        with pytest.raises(InvalidCollapseRequest) as exc_info:
            strict_grid.collapse((1, 1), 'C')

        assert exc_info.value.position == (1, 1)
        assert exc_info.value.tile_id == 'C'
        assert candidate_map(strict_grid) == before
        assert not strict_grid.is_placed((1, 1))

    def test_invalid_request_is_value_error(self, strict_grid):
        strict_grid.collapse((0, 0), 'A')
        with pytest.raises(ValueError):
            strict_grid.collapse((1, 0), 'C')

    def test_position_outside_grid(self, open_grid):
        with pytest.raises(InvalidCollapseRequest, match="outside"):
            open_grid.collapse((3, 3), 'A')

    def test_unknown_tile(self, open_grid):
        with pytest.raises(UnknownTileType):
            open_grid.collapse((0, 0), 'nope')
        assert open_grid.placed_count() == 0


class TestPropagationProperties:
    """Invariants of the propagation pass."""

    def test_candidate_sets_only_shrink(self, terrain_catalog):
        rng = random.Random(99)
        grid = FieldGrid(8, 8, terrain_catalog)
        previous = {pos: cell.entropy for pos, cell in grid.cells.items()}

        for _ in range(30):
            open_cells = [c for c in grid.cells.values() if not c.placed]
            if not open_cells:
                break
            cell = rng.choice(open_cells)
            try:
                grid.collapse(cell.position, rng.choice(cell.candidate_ids()))
            except Contradiction:
                break

            for pos, other in grid.cells.items():
                assert 1 <= other.entropy <= previous[pos]
                previous[pos] = other.entropy

    def test_propagation_is_idempotent(self, terrain_grid):
        terrain_grid.collapse((3, 3), 'water')
        terrain_grid.collapse((0, 6), 'sand')
        before = candidate_map(terrain_grid)

        for pos in terrain_grid.cells:
            assert terrain_grid.propagate_from(pos) == 0

        assert candidate_map(terrain_grid) == before

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_neighbor_order_does_not_change_result(self, terrain_catalog, seed):
        reference = FieldGrid(9, 9, terrain_catalog)
        reference.collapse((2, 2), 'water')
        reference.collapse((8, 8), 'mountain')

        offsets = list(NEIGHBOR_OFFSETS)
        random.Random(seed).shuffle(offsets)
        shuffled = FieldGrid(9, 9, terrain_catalog, neighbor_offsets=offsets)
        shuffled.collapse((2, 2), 'water')
        shuffled.collapse((8, 8), 'mountain')

        assert candidate_map(shuffled) == candidate_map(reference)

    def test_shrink_limit_stops_runaway_propagation(self, terrain_grid, monkeypatch):
        monkeypatch.setattr(FieldGrid, '_shrink_limit', lambda self: 3)
        with pytest.raises(PropagationLimitExceeded):
            terrain_grid.collapse((3, 3), 'water')

    def test_shrink_limit_matches_remaining_candidates(self, open_grid):
        assert open_grid._shrink_limit() == 9
        open_grid.collapse((1, 1), 'A')
        assert open_grid._shrink_limit() == 8

    def test_long_chain_has_no_recursion_limit(self, checker_catalog):
        """Each placed parity forces the next cell, far past the interpreter recursion limit."""
        grid = FieldGrid(3000, 1, checker_catalog)
        grid.collapse((0, 0), 'black')

        assert grid.collapsed_count() == 3000
        assert grid.candidate_ids_of((2998, 0)) == ('black',)
        assert grid.candidate_ids_of((2999, 0)) == ('white',)


class TestSignals:
    """Change notifications for renderers."""

    def test_collapse_signals(self, terrain_grid):
        collapsed = []
        updated = []
        terrain_grid.cell_collapsed.connect(lambda x, y, t: collapsed.append((x, y, t)))
        terrain_grid.cell_updated.connect(lambda x, y: updated.append((x, y)))

        terrain_grid.collapse((3, 3), 'water')

        assert collapsed == [(3, 3, 'water')]
        # Every other cell of the 7x7 field loses at least the mountain
        assert set(updated) == set(terrain_grid.cells) - {(3, 3)}

    def test_contradiction_signal(self):
        catalog = TileCatalog([TileType('A', {'A'}), TileType('X', set())])
        grid = FieldGrid(2, 1, catalog)
        found = []
        grid.contradiction_found.connect(lambda x, y: found.append((x, y)))

        with pytest.raises(Contradiction):
            grid.collapse((0, 0), 'X')

        assert found == [(1, 0)]


class TestQueries:
    """Read-only helpers used by drivers and renderers."""

    def test_lowest_entropy_positions(self, terrain_grid):
        terrain_grid.collapse((3, 3), 'water')
        positions = terrain_grid.lowest_entropy_positions()
        assert sorted(positions) == sorted(terrain_grid.neighbors_of((3, 3)))

    def test_lowest_entropy_includes_unplaced_singletons(self, strict_grid):
        # C only accepts C, so the whole field follows
        strict_grid.collapse((0, 0), 'C')
        positions = strict_grid.lowest_entropy_positions()
        assert set(positions) == set(strict_grid.cells) - {(0, 0)}
        assert all(strict_grid.entropy(pos) == 1 for pos in positions)

    def test_resolved_tiles(self, open_grid):
        open_grid.collapse((2, 2), 'B')
        open_grid.collapse((0, 0), 'A')
        resolved = open_grid.resolved_tiles()
        assert resolved == [
            ResolvedTile(0, 0, 'A', (255, 0, 0)),
            ResolvedTile(2, 2, 'B', (0, 0, 255)),
        ]
        assert open_grid.resolved_tile((1, 1)) is None
        assert open_grid.resolved_tile((2, 2)).tile_id == 'B'

    def test_counts(self, open_grid):
        open_grid.collapse((0, 0), 'A')
        open_grid.collapse((2, 2), 'B')
        assert open_grid.placed_count() == 2
        assert open_grid.collapsed_count() == 2
        assert open_grid.entropy((1, 1)) == 2
        assert not open_grid.is_complete()


class TestSnapshots:
    """Tests for snapshot and restore."""

    def test_restore_undoes_collapse(self, terrain_grid):
        snapshot = terrain_grid.snapshot()
        before = candidate_map(terrain_grid)

        terrain_grid.collapse((3, 3), 'water')
        terrain_grid.restore(snapshot)

        assert candidate_map(terrain_grid) == before
        assert terrain_grid.placed_count() == 0

    def test_snapshot_is_a_copy(self, terrain_grid):
        snapshot = terrain_grid.snapshot()
        terrain_grid.collapse((3, 3), 'water')
        assert snapshot.cells[(3, 3)] == (tuple(terrain_grid.catalog.tile_ids()), False)

    def test_restore_wrong_size(self, terrain_grid, terrain_catalog):
        other = FieldGrid(2, 2, terrain_catalog)
        with pytest.raises(ValueError):
            terrain_grid.restore(other.snapshot())

    def test_restore_rejects_empty_cells(self, open_grid):
        snapshot = open_grid.snapshot()
        snapshot.cells[(0, 0)] = ((), False)
        with pytest.raises(ValueError):
            open_grid.restore(snapshot)
