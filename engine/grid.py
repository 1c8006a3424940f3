"""Grid occupancy, movement cost, reachability, and line-of-sight logic."""

from __future__ import annotations

import heapq
import math
from collections.abc import Iterator
from typing import TYPE_CHECKING

from config import IMPASSABLE_THRESHOLD, MAX_ELEVATION
from models.units import Direction, RelativePosition

if TYPE_CHECKING:
    from models.game_state import Grid, Position
    from models.terrain import TerrainMap, TerrainTile
    from models.units import Entity

CARDINAL_STEPS = [(0, -1), (0, 1), (-1, 0), (1, 0)]


def create_grid(size: int) -> Grid:
    """Initialize an empty size x size occupancy grid.

    Returns:
        A 2D list indexed as grid[y][x], every cell None.
    """
    return [[None for _ in range(size)] for _ in range(size)]


def in_bounds(x: int, y: int, size: int) -> bool:
    """Check if coordinates are within a size x size grid."""
    return 0 <= x < size and 0 <= y < size


def manhattan(pos1: Position, pos2: Position) -> int:
    """Manhattan distance in cells between two positions."""
    return abs(pos1[0] - pos2[0]) + abs(pos1[1] - pos2[1])


def orthogonal_neighbors(pos: Position, size: int) -> list[Position]:
    """The in-bounds cells sharing an edge with pos (north, south, west, east)."""
    x, y = pos
    return [
        (x + dx, y + dy)
        for dx, dy in CARDINAL_STEPS
        if in_bounds(x + dx, y + dy, size)
    ]


def is_edge(pos: Position, size: int) -> bool:
    """True if pos lies on the outermost ring of the grid."""
    x, y = pos
    return x == 0 or y == 0 or x == size - 1 or y == size - 1


def is_impassable(tile: TerrainTile) -> bool:
    """True if no unit may enter the tile."""
    return tile.movement_cost > IMPASSABLE_THRESHOLD


def is_elevated_impassable(tile: TerrainTile) -> bool:
    """True for mountain-like tiles that later generation passes must keep."""
    return is_impassable(tile) and tile.height >= MAX_ELEVATION


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------


def get_entity(grid: Grid, pos: Position) -> Entity | None:
    """Return the entity at pos, or None if empty or out of bounds."""
    x, y = pos
    if not in_bounds(x, y, len(grid)):
        return None
    return grid[y][x]


def place_entity(grid: Grid, entity: Entity, pos: Position) -> None:
    """Put an entity into an empty cell.

    Raises:
        ValueError: If the position is out of bounds or already occupied.
    """
    x, y = pos
    if not in_bounds(x, y, len(grid)):
        raise ValueError(f"Position ({x}, {y}) is out of bounds")
    if grid[y][x] is not None:
        raise ValueError(f"Position ({x}, {y}) is already occupied")
    grid[y][x] = entity


def remove_entity(grid: Grid, pos: Position) -> Entity | None:
    """Clear a cell and return whatever occupied it."""
    x, y = pos
    entity = grid[y][x]
    grid[y][x] = None
    return entity


def relocate_entity(grid: Grid, start: Position, end: Position) -> Entity:
    """Move the entity at start into the empty cell at end.

    Raises:
        ValueError: If start is empty or end is unavailable.
    """
    entity = get_entity(grid, start)
    if entity is None:
        raise ValueError(f"No entity at {start}")
    place_entity(grid, entity, end)
    remove_entity(grid, start)
    return entity


def iter_entities(grid: Grid) -> Iterator[tuple[Position, Entity]]:
    """Yield ((x, y), entity) for every occupied cell in row-major order."""
    for y, row in enumerate(grid):
        for x, entity in enumerate(row):
            if entity is not None:
                yield (x, y), entity


# ---------------------------------------------------------------------------
# Facing
# ---------------------------------------------------------------------------


def relative_position(facing: Direction, dx: int, dy: int) -> RelativePosition:
    """Classify an offset (other minus self) against a facing direction.

    Directly behind is REAR, directly to either side is FLANK, anything
    else is FRONT.
    """
    fx, fy = facing.delta
    along = dx * fx + dy * fy
    lateral = dx * fy - dy * fx
    if along < 0 and lateral == 0:
        return RelativePosition.REAR
    if along == 0:
        return RelativePosition.FLANK
    return RelativePosition.FRONT


def direction_between(start: Position, end: Position) -> Direction | None:
    """The cardinal direction dominating the vector start -> end.

    Vertical wins ties. Returns None when start == end.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if dx == 0 and dy == 0:
        return None
    if abs(dx) > abs(dy):
        return Direction.EAST if dx > 0 else Direction.WEST
    return Direction.SOUTH if dy > 0 else Direction.NORTH


# ---------------------------------------------------------------------------
# Pathfinding
# ---------------------------------------------------------------------------


def _expand_costs(
    start: Position,
    grid: Grid,
    terrain_map: TerrainMap,
    max_budget: float,
    end: Position | None = None,
    allow_occupied_end: bool = False,
) -> dict[Position, float]:
    """Cost-weighted expansion from start, cheapest frontier cell first.

    Stops as soon as end (if given) is expanded. Paths never exceed
    max_budget, never enter impassable terrain, and never enter occupied
    cells except end when allow_occupied_end is set.
    """
    size = len(grid)
    costs: dict[Position, float] = {start: 0}
    frontier: list[tuple[float, Position]] = [(0, start)]

    while frontier:
        cost, pos = heapq.heappop(frontier)
        if cost > costs.get(pos, math.inf):
            continue  # stale entry
        if pos == end:
            break
        for nx, ny in orthogonal_neighbors(pos, size):
            tile = terrain_map[ny][nx]
            if is_impassable(tile):
                continue
            if grid[ny][nx] is not None and not (allow_occupied_end and (nx, ny) == end):
                continue
            new_cost = cost + tile.movement_cost
            if new_cost > max_budget:
                continue
            if new_cost < costs.get((nx, ny), math.inf):
                costs[(nx, ny)] = new_cost
                heapq.heappush(frontier, (new_cost, (nx, ny)))

    return costs


def reach_cost(
    start: Position,
    end: Position,
    grid: Grid,
    terrain_map: TerrainMap,
    max_budget: float,
    allow_occupied_end: bool = False,
) -> float | None:
    """Cheapest movement cost from start to end within a budget.

    Args:
        start: (x, y) of the mover.
        end: (x, y) of the destination.
        grid: Occupancy grid.
        terrain_map: Terrain for the same grid.
        max_budget: Largest total cost worth exploring.
        allow_occupied_end: Treat an occupied destination as enterable. Pass
            True for adjacency/attack checks; movement must leave it False.

    Returns:
        The minimal cost, or None if end cannot be reached within budget.
    """
    if start == end:
        return 0
    size = len(grid)
    if not in_bounds(end[0], end[1], size):
        return None
    costs = _expand_costs(start, grid, terrain_map, max_budget, end, allow_occupied_end)
    return costs.get(end)


def reachable_cells(
    start: Position,
    max_budget: float,
    grid: Grid,
    terrain_map: TerrainMap,
) -> dict[Position, float]:
    """All empty cells a unit at start can move to within a budget.

    Uses the same cost-aware rules as reach_cost, so every returned cell is
    a destination the move action accepts.

    Returns:
        Mapping of (x, y) to the cheapest cost, start excluded.
    """
    if max_budget <= 0:
        return {}
    costs = _expand_costs(start, grid, terrain_map, max_budget)
    costs.pop(start, None)
    return costs


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


def line_of_sight(
    pos1: Position,
    pos2: Position,
    terrain_map: TerrainMap,
) -> bool:
    """Check if pos1 can see pos2.

    Uses Bresenham's line algorithm to trace between positions. Only the
    cells strictly between the endpoints can block.

    Args:
        pos1: (x, y) of observer.
        pos2: (x, y) of target.
        terrain_map: Terrain to trace through.

    Returns:
        True if line of sight is clear.
    """
    x0, y0 = pos1
    x1, y1 = pos2

    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    while True:
        if (x0, y0) != pos1 and (x0, y0) != pos2:
            if terrain_map[y0][x0].blocks_line_of_sight:
                return False
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy

    return True
