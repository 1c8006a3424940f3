"""Tests for grid occupancy, facing, pathfinding, and line-of-sight logic."""

import pytest

from engine.combat import create_entity
from engine.grid import (
    create_grid,
    direction_between,
    in_bounds,
    is_edge,
    is_elevated_impassable,
    is_impassable,
    iter_entities,
    line_of_sight,
    manhattan,
    orthogonal_neighbors,
    place_entity,
    reach_cost,
    reachable_cells,
    relative_position,
    relocate_entity,
    remove_entity,
)
from engine.tables import DEFAULT_TERRAIN, DEFAULT_UNIT_STATS
from models.terrain import TerrainType
from models.units import Direction, RelativePosition, UnitType


def _make_entity(owner: str = "p1", unit_type: UnitType = UnitType.LIGHT_INFANTRY):
    """Helper to create a unit from the default table."""
    return create_entity(DEFAULT_UNIT_STATS[unit_type], unit_type, owner)


def _make_terrain(size: int, overrides: dict | None = None):
    """Helper to build an all-plains map with some tiles replaced."""
    terrain_map = [[DEFAULT_TERRAIN[TerrainType.PLAINS] for _ in range(size)] for _ in range(size)]
    for (x, y), terrain_type in (overrides or {}).items():
        terrain_map[y][x] = DEFAULT_TERRAIN[terrain_type]
    return terrain_map


class TestCreateGrid:
    """Tests for create_grid()."""

    def test_dimensions(self):
        grid = create_grid(8)
        assert len(grid) == 8
        assert all(len(row) == 8 for row in grid)

    def test_all_empty(self):
        grid = create_grid(4)
        assert all(cell is None for row in grid for cell in row)


class TestGeometry:
    """Tests for bounds, distance, neighbours, and edges."""

    def test_in_bounds(self):
        assert in_bounds(0, 0, 5)
        assert in_bounds(4, 4, 5)
        assert not in_bounds(5, 0, 5)
        assert not in_bounds(0, -1, 5)

    def test_manhattan(self):
        assert manhattan((0, 0), (3, 4)) == 7
        assert manhattan((2, 2), (2, 2)) == 0

    def test_corner_has_two_neighbors(self):
        assert sorted(orthogonal_neighbors((0, 0), 5)) == [(0, 1), (1, 0)]

    def test_interior_has_four_neighbors(self):
        assert len(orthogonal_neighbors((2, 2), 5)) == 4

    def test_is_edge(self):
        assert is_edge((0, 3), 5)
        assert is_edge((3, 4), 5)
        assert not is_edge((2, 2), 5)


class TestTerrainPredicates:
    """Tests for is_impassable() and is_elevated_impassable()."""

    def test_plains_passable(self):
        assert not is_impassable(DEFAULT_TERRAIN[TerrainType.PLAINS])

    def test_water_passable(self):
        assert not is_impassable(DEFAULT_TERRAIN[TerrainType.WATER])

    def test_wall_impassable_but_not_elevated(self):
        wall = DEFAULT_TERRAIN[TerrainType.WALL]
        assert is_impassable(wall)
        assert not is_elevated_impassable(wall)

    def test_mountain_elevated(self):
        assert is_elevated_impassable(DEFAULT_TERRAIN[TerrainType.MOUNTAIN])


class TestOccupancy:
    """Tests for placing, removing, and relocating entities."""

    def test_place_and_iterate(self):
        grid = create_grid(5)
        a = _make_entity()
        b = _make_entity()
        place_entity(grid, a, (3, 0))
        place_entity(grid, b, (1, 2))
        assert list(iter_entities(grid)) == [((3, 0), a), ((1, 2), b)]

    def test_place_occupied_raises(self):
        grid = create_grid(5)
        place_entity(grid, _make_entity(), (1, 1))
        with pytest.raises(ValueError, match="already occupied"):
            place_entity(grid, _make_entity(), (1, 1))

    def test_place_out_of_bounds_raises(self):
        grid = create_grid(5)
        with pytest.raises(ValueError, match="out of bounds"):
            place_entity(grid, _make_entity(), (5, 0))

    def test_remove_returns_entity(self):
        grid = create_grid(5)
        entity = _make_entity()
        place_entity(grid, entity, (2, 2))
        assert remove_entity(grid, (2, 2)) is entity
        assert grid[2][2] is None

    def test_relocate(self):
        grid = create_grid(5)
        entity = _make_entity()
        place_entity(grid, entity, (0, 0))
        relocate_entity(grid, (0, 0), (0, 1))
        assert grid[0][0] is None
        assert grid[1][0] is entity

    def test_relocate_into_occupied_raises(self):
        grid = create_grid(5)
        entity = _make_entity()
        place_entity(grid, entity, (0, 0))
        place_entity(grid, _make_entity(), (0, 1))
        with pytest.raises(ValueError):
            relocate_entity(grid, (0, 0), (0, 1))
        assert grid[0][0] is entity


class TestRelativePosition:
    """Tests for relative_position()."""

    def test_facing_north(self):
        assert relative_position(Direction.NORTH, 0, -1) == RelativePosition.FRONT
        assert relative_position(Direction.NORTH, 1, 0) == RelativePosition.FLANK
        assert relative_position(Direction.NORTH, -1, 0) == RelativePosition.FLANK
        assert relative_position(Direction.NORTH, 0, 1) == RelativePosition.REAR

    def test_facing_east(self):
        assert relative_position(Direction.EAST, 1, 0) == RelativePosition.FRONT
        assert relative_position(Direction.EAST, 0, 1) == RelativePosition.FLANK
        assert relative_position(Direction.EAST, -1, 0) == RelativePosition.REAR

    def test_distant_rear(self):
        assert relative_position(Direction.SOUTH, 0, -3) == RelativePosition.REAR


class TestDirectionBetween:
    """Tests for direction_between()."""

    def test_horizontal(self):
        assert direction_between((0, 0), (3, 1)) == Direction.EAST
        assert direction_between((3, 0), (0, 1)) == Direction.WEST

    def test_vertical_wins_ties(self):
        assert direction_between((0, 0), (2, 2)) == Direction.SOUTH
        assert direction_between((2, 2), (0, 0)) == Direction.NORTH

    def test_same_cell(self):
        assert direction_between((1, 1), (1, 1)) is None


class TestReachCost:
    """Tests for reach_cost()."""

    def test_same_cell_costs_nothing(self):
        assert reach_cost((1, 1), (1, 1), create_grid(5), _make_terrain(5), 3) == 0

    def test_straight_line(self):
        assert reach_cost((0, 0), (3, 0), create_grid(5), _make_terrain(5), 10) == 3

    def test_street_is_cheaper(self):
        terrain = _make_terrain(5, {(1, 0): TerrainType.STREET, (2, 0): TerrainType.STREET})
        assert reach_cost((0, 0), (2, 0), create_grid(5), terrain, 10) == pytest.approx(1.0)

    def test_forest_costs_two(self):
        terrain = _make_terrain(5, {(1, 0): TerrainType.FOREST})
        assert reach_cost((0, 0), (1, 0), create_grid(5), terrain, 10) == 2

    def test_detour_around_wall(self):
        walls = {(1, y): TerrainType.WALL for y in range(4)}
        terrain = _make_terrain(5, walls)
        assert reach_cost((0, 0), (2, 0), create_grid(5), terrain, 20) == 10

    def test_over_budget_is_unreachable(self):
        assert reach_cost((0, 0), (4, 0), create_grid(5), _make_terrain(5), 3) is None

    def test_impassable_destination(self):
        terrain = _make_terrain(5, {(1, 0): TerrainType.WALL})
        assert reach_cost((0, 0), (1, 0), create_grid(5), terrain, 200) is None

    def test_occupied_destination(self):
        grid = create_grid(5)
        place_entity(grid, _make_entity(), (1, 0))
        assert reach_cost((0, 0), (1, 0), grid, _make_terrain(5), 5) is None
        assert reach_cost((0, 0), (1, 0), grid, _make_terrain(5), 5, allow_occupied_end=True) == 1

    def test_occupied_cells_block_paths(self):
        grid = create_grid(3)
        place_entity(grid, _make_entity(), (1, 0))
        assert reach_cost((0, 0), (2, 0), grid, _make_terrain(3), 10) == 4

    def test_out_of_bounds_destination(self):
        assert reach_cost((0, 0), (9, 9), create_grid(5), _make_terrain(5), 100) is None


class TestReachableCells:
    """Tests for reachable_cells()."""

    def test_one_step(self):
        cells = reachable_cells((2, 2), 1, create_grid(5), _make_terrain(5))
        assert set(cells) == {(2, 1), (2, 3), (1, 2), (3, 2)}

    def test_excludes_start(self):
        cells = reachable_cells((2, 2), 3, create_grid(5), _make_terrain(5))
        assert (2, 2) not in cells

    def test_zero_budget(self):
        assert reachable_cells((2, 2), 0, create_grid(5), _make_terrain(5)) == {}

    def test_excludes_occupied_cells(self):
        grid = create_grid(5)
        place_entity(grid, _make_entity(), (2, 1))
        cells = reachable_cells((2, 2), 2, grid, _make_terrain(5))
        assert (2, 1) not in cells

    def test_agrees_with_reach_cost(self):
        terrain = _make_terrain(7, {
            (3, 2): TerrainType.FOREST,
            (2, 3): TerrainType.WATER,
            (4, 3): TerrainType.STREET,
            (3, 4): TerrainType.WALL,
        })
        grid = create_grid(7)
        place_entity(grid, _make_entity(owner="p2"), (5, 3))
        cells = reachable_cells((3, 3), 4, grid, terrain)
        assert cells
        for pos, cost in cells.items():
            assert cost <= 4
            assert reach_cost((3, 3), pos, grid, terrain, 4) == pytest.approx(cost)


class TestLineOfSight:
    """Tests for line_of_sight()."""

    def test_clear(self):
        assert line_of_sight((0, 0), (4, 4), _make_terrain(5))

    def test_blocked_by_forest(self):
        terrain = _make_terrain(5, {(2, 0): TerrainType.FOREST})
        assert not line_of_sight((0, 0), (4, 0), terrain)

    def test_endpoints_never_block(self):
        terrain = _make_terrain(5, {(0, 0): TerrainType.FOREST, (2, 0): TerrainType.FOREST})
        assert line_of_sight((0, 0), (2, 0), terrain)

    def test_water_does_not_block(self):
        terrain = _make_terrain(5, {(2, 0): TerrainType.WATER})
        assert line_of_sight((0, 0), (4, 0), terrain)
