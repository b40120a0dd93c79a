"""
Tests for tiles - XYZ grid indexing, envelopes and per-tile payloads.
"""

import pytest
import numpy as np

from routegraph.compiler import compile_entities
from routegraph.entities import Way
from routegraph.intersections import compile_intersections
from routegraph.tiles import (
    build_tile_grid,
    decode_tile,
    encode_tile,
    grid_width,
    tile_coords,
    tile_envelope,
    tile_for_point,
    tile_index,
)


def test_index_is_bijective_at_small_zoom():
    z = 3
    w = grid_width(z)
    seen = set()
    for x in range(w):
        for y in range(w):
            idx = tile_index(x, y, z)
            assert tile_coords(idx, z) == (x, y)
            seen.add(idx)
    assert seen == set(range(w * w))


def test_default_zoom_index():
    assert tile_index(1, 2) == 1 * 4096 + 2
    assert tile_coords(4096 * 4096 - 1) == (4095, 4095)


@pytest.mark.parametrize("x, y, z", [(-1, 0, 2), (0, 4, 2), (4, 0, 2)])
def test_tile_index_out_of_range(x, y, z):
    with pytest.raises(ValueError):
        tile_index(x, y, z)


def test_invalid_zoom():
    with pytest.raises(ValueError):
        grid_width(31)
    with pytest.raises(ValueError):
        grid_width(1.5)


def test_tile_envelope_z0_covers_world():
    west, south, east, north = tile_envelope(0, 0, 0).bounds
    assert (west, east) == (-180.0, 180.0)
    assert north == pytest.approx(85.0511287798066)
    assert south == pytest.approx(-85.0511287798066)


def test_tile_envelope_northwest_is_origin():
    # Tile (0, 0) is the north-west corner; y grows southwards.
    north_tile = tile_envelope(0, 0, 1)
    south_tile = tile_envelope(0, 1, 1)
    assert north_tile.bounds[1] == pytest.approx(0.0, abs=1e-9)
    assert south_tile.bounds[3] == pytest.approx(0.0, abs=1e-9)
    assert north_tile.bounds[0] == -180.0


def test_tile_for_point_matches_envelope():
    x, y = tile_for_point(-75.16, 39.95, 12)
    west, south, east, north = tile_envelope(x, y, 12).bounds
    assert west <= -75.16 < east
    assert south <= 39.95 < north


def test_full_grid_small_zoom():
    tiles = build_tile_grid(2)
    assert len(tiles) == 16
    assert tiles['index'].tolist() == list(range(16))
    assert list(tiles.columns) == ['index', 'x', 'y', 'z', 'geometry']
    assert (tiles['z'] == 2).all()
    row = tiles.iloc[6]
    assert (row['x'], row['y']) == tile_coords(6, 2)
    assert row.geometry.equals_exact(tile_envelope(row['x'], row['y'], 2), tolerance=1e-9)


def test_grid_within_bounds():
    bounds = (-75.17, 39.94, -75.14, 39.96)
    tiles = build_tile_grid(12, bounds=bounds)
    assert 0 < len(tiles) <= 4
    assert np.all(np.diff(tiles['index']) > 0)
    x, y = tile_for_point(-75.16, 39.95, 12)
    assert tile_index(x, y, 12) in tiles['index'].tolist()


def test_invalid_bounds():
    with pytest.raises(ValueError):
        build_tile_grid(4, bounds=(10, 0, -10, 5))


@pytest.fixture
def network():
    store = compile_entities([
        Way(10, [(0.0, 0.0), (0.002, 0.0)], {'highway': 'primary'}),
        Way(11, [(0.001, -0.001), (0.001, 0.001)], {'highway': 'residential'}),
        Way(12, [(50.0, 50.0), (50.001, 50.0)], {'highway': 'track'}),
    ])
    roads = store.roads_frame()
    return roads, compile_intersections(roads)


def test_encode_decode_tile(network):
    roads, intersections = network
    x, y = tile_for_point(0.0005, 0.0005, 12)
    road_bytes, intersection_bytes = encode_tile(roads, intersections, x, y, 12)
    assert isinstance(road_bytes, bytes)

    window_roads, window_intersections = decode_tile(road_bytes, intersection_bytes)
    assert sorted(window_roads['way_id']) == [10, 11]
    assert len(window_intersections) == 2
    assert window_roads.set_index('way_id').loc[10, 'tags'] == {'highway': 'primary'}
    assert window_roads.set_index('way_id').loc[10, 'rel_ids'] == []


def test_empty_tile(network):
    roads, intersections = network
    x, y = tile_for_point(-120.0, -40.0, 12)
    window_roads, window_intersections = decode_tile(*encode_tile(roads, intersections, x, y, 12))
    assert len(window_roads) == 0
    assert len(window_intersections) == 0

