"""Procedural terrain generation.

The generator starts from an all-plains map and runs five passes in a fixed
order: mountains, streets, walls, forests, rivers. Each pass may overwrite
plains and street tiles left by earlier passes; rivers run last so water is
never overwritten, and never replace elevated impassable tiles.

Feature counts are scaled by ``size**2 / base_area`` so density stays roughly
constant across map sizes. The top and bottom spawn rows and the four player
base rectangles are kept free of features.

All randomness comes from a private ``random.Random(seed)``, so a fixed seed
reproduces the same map.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable

from engine.dice import chance, roll_count
from engine.grid import in_bounds, is_elevated_impassable
from engine.tables import DEFAULT_TERRAIN
from models.terrain import (
    ForestConfig,
    MapGenConfig,
    MountainConfig,
    RiverConfig,
    StreetConfig,
    TerrainMap,
    TerrainTile,
    TerrainType,
    WallConfig,
)

logger = logging.getLogger(__name__)

ZoneCheck = Callable[[int, int], bool]

_OVERWRITABLE = (TerrainType.PLAINS, TerrainType.STREET)


def base_areas(size: int) -> list[tuple[int, int, int, int]]:
    """The four player base rectangles as (x, y, width, height).

    Bases sit centred on the top, bottom, left and right edges. On maps
    smaller than 20 cells the short side is 0 and the bases are empty.
    """
    dim_long = size // 2
    dim_short = size // 20
    offset = (size - dim_long) // 2
    return [
        (offset, 0, dim_long, dim_short),
        (offset, size - dim_short, dim_long, dim_short),
        (0, offset, dim_short, dim_long),
        (size - dim_short, offset, dim_short, dim_long),
    ]


def _zone_check(size: int, spawn_zone_height: int) -> ZoneCheck:
    """Build the predicate for cells that may receive terrain features."""
    bases = base_areas(size)

    def is_valid(x: int, y: int) -> bool:
        if not in_bounds(x, y, size):
            return False
        if y < spawn_zone_height or y >= size - spawn_zone_height:
            return False
        for bx, by, bw, bh in bases:
            if bx <= x < bx + bw and by <= y < by + bh:
                return False
        return True

    return is_valid


def _clamp(value: int, size: int) -> int:
    return max(0, min(size - 1, value))


def _random_cell(size: int, rng: random.Random) -> tuple[int, int]:
    return rng.randrange(size), rng.randrange(size)


def _random_start(
    size: int,
    accept: ZoneCheck,
    attempts: int,
    rng: random.Random,
) -> tuple[int, int] | None:
    """Sample random cells until one is accepted, or give up."""
    for _ in range(attempts):
        x, y = _random_cell(size, rng)
        if accept(x, y):
            return x, y
    return None


def _sign(rng: random.Random) -> int:
    return 1 if chance(0.5, rng) else -1


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def _place_mountains(
    terrain_map: TerrainMap,
    tile: TerrainTile,
    cfg: MountainConfig,
    area_scale: float,
    is_valid: ZoneCheck,
    rng: random.Random,
) -> int:
    size = len(terrain_map)
    target = int(roll_count(cfg.base_min, cfg.base_var, rng) * area_scale * cfg.density)
    max_attempts = cfg.max_attempts_scale * area_scale
    largest = max(math.ceil(math.log(size)), cfg.group_size_small)

    placed = 0
    attempts = 0
    while placed < target and attempts < max_attempts:
        attempts += 1
        side = roll_count(cfg.group_size_small, largest - cfg.group_size_small + 1, rng)
        span = size - side - 2
        if span < 1:
            break
        mx = 1 + rng.randrange(span)
        my = 1 + rng.randrange(span)

        # The group and a one-cell margin must be clear of bases and other mountains
        clear = all(
            is_valid(x, y) and terrain_map[y][x].type != TerrainType.MOUNTAIN
            for y in range(my - 1, my + side + 1)
            for x in range(mx - 1, mx + side + 1)
        )
        if not clear:
            continue

        for y in range(my, my + side):
            for x in range(mx, mx + side):
                terrain_map[y][x] = tile
        placed += 1
    return placed


def _place_streets(
    terrain_map: TerrainMap,
    tile: TerrainTile,
    cfg: StreetConfig,
    area_scale: float,
    is_valid: ZoneCheck,
    attempts: int,
    rng: random.Random,
) -> int:
    size = len(terrain_map)
    count = int(roll_count(cfg.base_min, cfg.base_var, rng) * math.sqrt(area_scale) * cfg.scale)
    length = int(size * cfg.length_factor)

    def on_plains(x: int, y: int) -> bool:
        return is_valid(x, y) and terrain_map[y][x].type == TerrainType.PLAINS

    placed = 0
    for _ in range(count):
        start = _random_start(size, on_plains, attempts, rng)
        if start is None:
            continue
        x, y = start
        horizontal = chance(0.5, rng)
        heading = _sign(rng)
        jog = 0  # sign of the current sideways step, 0 while on the primary axis

        for _ in range(length):
            if on_plains(x, y):
                terrain_map[y][x] = tile
            if jog == 0:
                if chance(cfg.turn_bias, rng):
                    jog = _sign(rng)
            elif not chance(cfg.continue_bias, rng):
                jog = 0

            if jog == 0:
                dx, dy = (heading, 0) if horizontal else (0, heading)
            else:
                dx, dy = (0, jog) if horizontal else (jog, 0)
            x = _clamp(x + dx, size)
            y = _clamp(y + dy, size)
        placed += 1
    return placed


def _place_walls(
    terrain_map: TerrainMap,
    tile: TerrainTile,
    cfg: WallConfig,
    area_scale: float,
    is_valid: ZoneCheck,
    spawn_zone_height: int,
    rng: random.Random,
) -> int:
    size = len(terrain_map)
    rows = size - 2 * spawn_zone_height
    if rows <= 0:
        return 0
    count = int(roll_count(cfg.base_min, cfg.base_var, rng) * area_scale * cfg.density)

    for _ in range(count):
        start_x = rng.randrange(size)
        start_y = spawn_zone_height + rng.randrange(rows)
        vertical = chance(0.5, rng)
        length = roll_count(cfg.length_min, cfg.length_var, rng)

        for step in range(length):
            wx = start_x if vertical else start_x + step
            wy = start_y + step if vertical else start_y
            if is_valid(wx, wy) and terrain_map[wy][wx].type in _OVERWRITABLE:
                terrain_map[wy][wx] = tile
    return count


def _place_forests(
    terrain_map: TerrainMap,
    tile: TerrainTile,
    cfg: ForestConfig,
    area_scale: float,
    is_valid: ZoneCheck,
    rng: random.Random,
) -> int:
    size = len(terrain_map)
    count = int(roll_count(cfg.base_min, cfg.base_var, rng) * area_scale * cfg.density)

    for _ in range(count):
        cx, cy = _random_cell(size, rng)
        if not is_valid(cx, cy):
            continue
        blob_size = roll_count(cfg.blob_size_min, cfg.blob_size_var, rng)
        open_set = [(cx, cy)]
        grown = 0

        while grown < blob_size and open_set:
            x, y = open_set.pop(rng.randrange(len(open_set)))
            if not is_valid(x, y) or terrain_map[y][x].type not in _OVERWRITABLE:
                continue
            terrain_map[y][x] = tile
            grown += 1
            open_set.extend([(x, y + 1), (x, y - 1), (x + 1, y), (x - 1, y)])
    return count


def _place_rivers(
    terrain_map: TerrainMap,
    tile: TerrainTile,
    cfg: RiverConfig,
    area_scale: float,
    is_valid: ZoneCheck,
    attempts: int,
    rng: random.Random,
) -> int:
    size = len(terrain_map)
    count = max(1, int(area_scale * cfg.density))
    length = int(size * cfg.length_factor)

    placed = 0
    for _ in range(count):
        start = _random_start(size, is_valid, attempts, rng)
        if start is None:
            continue
        x, y = start
        for _ in range(length):
            if is_valid(x, y) and not is_elevated_impassable(terrain_map[y][x]):
                terrain_map[y][x] = tile
            if chance(0.5, rng):
                x = _clamp(x + _sign(rng), size)
            else:
                y = _clamp(y + _sign(rng), size)
        placed += 1
    return placed


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def generate_map(
    size: int,
    seed: int | None = None,
    config: MapGenConfig | None = None,
    terrain: dict[TerrainType, TerrainTile] | None = None,
) -> TerrainMap:
    """Generate a size x size terrain map.

    Args:
        size: Cells per side.
        seed: Seed for the generator's private Random. None draws a fresh one.
        config: Generator settings; defaults come from config.py.
        terrain: Terrain table; the mountain pass runs only if it has a
            mountain tile.

    Returns:
        A 2D list of TerrainTile indexed as terrain_map[y][x].
    """
    config = config or MapGenConfig()
    terrain = terrain or DEFAULT_TERRAIN
    rng = random.Random(seed)

    terrain_map = [[terrain[TerrainType.PLAINS] for _ in range(size)] for _ in range(size)]
    is_valid = _zone_check(size, config.spawn_zone_height)
    area_scale = (size * size) / config.base_area

    mountains = 0
    if TerrainType.MOUNTAIN in terrain:
        mountains = _place_mountains(
            terrain_map, terrain[TerrainType.MOUNTAIN], config.mountains,
            area_scale, is_valid, rng,
        )
    streets = _place_streets(
        terrain_map, terrain[TerrainType.STREET], config.streets,
        area_scale, is_valid, config.max_start_attempts, rng,
    )
    walls = _place_walls(
        terrain_map, terrain[TerrainType.WALL], config.walls,
        area_scale, is_valid, config.spawn_zone_height, rng,
    )
    forests = _place_forests(
        terrain_map, terrain[TerrainType.FOREST], config.forests,
        area_scale, is_valid, rng,
    )
    rivers = _place_rivers(
        terrain_map, terrain[TerrainType.WATER], config.rivers,
        area_scale, is_valid, config.max_start_attempts, rng,
    )

    logger.debug(
        "Generated %dx%d map (seed=%s): %d mountain groups, %d streets, "
        "%d walls, %d forests, %d rivers",
        size, size, seed, mountains, streets, walls, forests, rivers,
    )
    return terrain_map


def terrain_signature(terrain_map: TerrainMap) -> str:
    """Serialize a map's terrain ids, one row per line, for exact comparison."""
    return "\n".join(
        ",".join(tile.type.value for tile in row)
        for row in terrain_map
    )
