"""Tests for procedural map generation."""

import pytest

from engine.mapgen import base_areas, generate_map, terrain_signature
from engine.tables import DEFAULT_TERRAIN
from models.terrain import MapGenConfig, MountainConfig, RiverConfig, TerrainType


def _cells_of(terrain_map, terrain_type: TerrainType) -> set[tuple[int, int]]:
    """Helper returning every (x, y) holding the given terrain."""
    return {
        (x, y)
        for y, row in enumerate(terrain_map)
        for x, tile in enumerate(row)
        if tile.type == terrain_type
    }


class TestGenerateMap:
    """Tests for generate_map()."""

    def test_dimensions(self):
        terrain_map = generate_map(20, seed=1)
        assert len(terrain_map) == 20
        assert all(len(row) == 20 for row in terrain_map)

    def test_same_seed_same_map(self):
        assert terrain_signature(generate_map(20, seed=1234)) == terrain_signature(generate_map(20, seed=1234))

    def test_different_seeds_differ(self):
        assert terrain_signature(generate_map(30, seed=1)) != terrain_signature(generate_map(30, seed=2))

    def test_spawn_rows_stay_plains(self):
        for seed in range(10):
            terrain_map = generate_map(20, seed=seed)
            assert all(tile.type == TerrainType.PLAINS for tile in terrain_map[0])
            assert all(tile.type == TerrainType.PLAINS for tile in terrain_map[-1])

    def test_base_areas_stay_plains(self):
        for seed in range(5):
            terrain_map = generate_map(40, seed=seed)
            for bx, by, bw, bh in base_areas(40):
                for y in range(by, by + bh):
                    for x in range(bx, bx + bw):
                        assert terrain_map[y][x].type == TerrainType.PLAINS

    def test_tiles_come_from_table(self):
        terrain_map = generate_map(20, seed=3)
        table = list(DEFAULT_TERRAIN.values())
        assert all(tile in table for row in terrain_map for tile in row)

    def test_no_mountains_without_mountain_tile(self):
        terrain = {k: v for k, v in DEFAULT_TERRAIN.items() if k != TerrainType.MOUNTAIN}
        config = MapGenConfig(mountains=MountainConfig(base_min=5, density=5.0))
        terrain_map = generate_map(30, seed=9, config=config, terrain=terrain)
        assert not _cells_of(terrain_map, TerrainType.MOUNTAIN)

    def test_rivers_never_cover_mountains(self):
        mountains = MountainConfig(base_min=4, density=3.0)
        dry = MapGenConfig(mountains=mountains, rivers=RiverConfig(length_factor=0))
        wet = MapGenConfig(mountains=mountains, rivers=RiverConfig(density=10.0, length_factor=4.0))

        dry_map = generate_map(30, seed=5, config=dry)
        wet_map = generate_map(30, seed=5, config=wet)

        assert _cells_of(dry_map, TerrainType.MOUNTAIN)
        assert _cells_of(wet_map, TerrainType.WATER)
        assert _cells_of(dry_map, TerrainType.MOUNTAIN) == _cells_of(wet_map, TerrainType.MOUNTAIN)

    @pytest.mark.parametrize("size", [1, 3, 5])
    def test_tiny_maps(self, size):
        terrain_map = generate_map(size, seed=0)
        assert len(terrain_map) == size


class TestBaseAreas:
    """Tests for base_areas()."""

    def test_default_size(self):
        assert base_areas(20) == [
            (5, 0, 10, 1),
            (5, 19, 10, 1),
            (0, 5, 1, 10),
            (19, 5, 1, 10),
        ]

    def test_small_maps_have_empty_bases(self):
        assert all(w == 0 or h == 0 for _, _, w, h in base_areas(10))


class TestTerrainSignature:
    """Tests for terrain_signature()."""

    def test_format(self):
        plains = DEFAULT_TERRAIN[TerrainType.PLAINS]
        forest = DEFAULT_TERRAIN[TerrainType.FOREST]
        assert terrain_signature([[plains, forest], [forest, plains]]) == "plains,forest\nforest,plains"
