"""
Fixed-zoom XYZ tile grid and per-tile windows of the compiled graph.

Tiles follow the web-mercator XYZ scheme: at zoom `z` the grid is W x W with
W = 2**z, tile (0, 0) at the north-west corner, and the linear index of a
tile is ``x * W + y``. Tile polygons are expressed in EPSG:4326.
"""

import geopandas as gpd
import mercantile
import numpy as np
import shapely

from routegraph.constants import DEFAULT_CRS, TILE_COLUMNS, TILE_ZOOM
from routegraph.io import frame_to_bytes, frame_from_bytes
from routegraph.store import empty_frame

MAX_LATITUDE = 85.0511287798066


def grid_width(z):
    if not isinstance(z, (int, np.integer)) or z < 0 or z > 30:
        raise ValueError(f"Zoom level must be an integer in [0, 30], got {z}")
    return 1 << int(z)


def tile_index(x, y, z=TILE_ZOOM):
    """Linear index of tile (x, y) at zoom z."""
    w = grid_width(z)
    if not (0 <= x < w and 0 <= y < w):
        raise ValueError(f"Tile ({x}, {y}) is outside the {w}x{w} grid at zoom {z}")
    return int(x) * w + int(y)


def tile_coords(index, z=TILE_ZOOM):
    """Inverse of `tile_index`: (x, y) of a linear index."""
    w = grid_width(z)
    if not 0 <= index < w * w:
        raise ValueError(f"Tile index {index} is outside the {w}x{w} grid at zoom {z}")
    x, y = divmod(int(index), w)
    return x, y


def _lon(x, n):
    return x / n * 360.0 - 180.0


def _lat(y, n):
    return np.degrees(np.arctan(np.sinh(np.pi * (1 - 2 * y / n))))


def tile_envelope(x, y, z=TILE_ZOOM):
    """Polygon covering tile (x, y, z) in lon/lat."""
    tile_index(x, y, z)
    bounds = mercantile.bounds(int(x), int(y), int(z))
    return shapely.box(bounds.west, bounds.south, bounds.east, bounds.north)


def tile_for_point(lon, lat, z=TILE_ZOOM):
    """Tile (x, y) containing a lon/lat position."""
    n = grid_width(z)
    lat = max(min(lat, MAX_LATITUDE), -MAX_LATITUDE)
    tile = mercantile.tile(lon, lat, int(z))
    return min(max(tile.x, 0), n - 1), min(max(tile.y, 0), n - 1)


def build_tile_grid(z=TILE_ZOOM, bounds=None, crs=DEFAULT_CRS):
    """
    Tile records of the grid at zoom `z`.

    Parameters
    ----------
    z : int, default TILE_ZOOM
        Zoom level.
    bounds : tuple, optional
        (west, south, east, north) in lon/lat; only tiles covering it are
        returned. The full W x W grid is produced when None.
    crs : str, default "EPSG:4326"

    Returns
    -------
    gpd.GeoDataFrame
        Columns `index`, `x`, `y`, `z`, `geometry`, ordered by index.
    """
    n = grid_width(z)
    if bounds is None:
        x0, y0, x1, y1 = 0, 0, n - 1, n - 1
    else:
        west, south, east, north = bounds
        if west > east or south > north:
            raise ValueError(f"Invalid bounds {bounds}; expected (west, south, east, north)")
        x0, y0 = tile_for_point(west, north, z)
        x1, y1 = tile_for_point(east, south, z)
    xs, ys = np.meshgrid(np.arange(x0, x1 + 1, dtype='int64'),
                         np.arange(y0, y1 + 1, dtype='int64'), indexing='ij')
    xs, ys = xs.ravel(), ys.ravel()
    if len(xs) == 0:
        return empty_frame(TILE_COLUMNS, crs)

    geoms = shapely.box(_lon(xs, n), _lat(ys + 1, n), _lon(xs + 1, n), _lat(ys, n))
    tiles = gpd.GeoDataFrame({
        'index': xs * n + ys,
        'x': xs,
        'y': ys,
        'z': np.full(len(xs), z, dtype='int64'),
    }, geometry=geoms, crs=crs)
    return tiles.sort_values('index').reset_index(drop=True)[TILE_COLUMNS]


def tile_window(roads, intersections, x, y, z=TILE_ZOOM):
    """
    Roads touching tile (x, y, z) and the intersection rows leaving them.

    Returns
    -------
    (gpd.GeoDataFrame, gpd.GeoDataFrame)
    """
    envelope = tile_envelope(x, y, z)
    if len(roads) == 0:
        return roads.copy(), intersections.iloc[0:0].copy()
    hits = roads.sindex.query(envelope, predicate='intersects')
    window_roads = roads.iloc[np.sort(hits)].copy()
    window_intersections = intersections[intersections['way_id'].isin(window_roads['way_id'])].copy()
    return window_roads, window_intersections


def encode_tile(roads, intersections, x, y, z=TILE_ZOOM):
    """
    Payloads for one tile, as consumed by a graph's ``ingest_tile``.

    Returns
    -------
    (bytes, bytes)
        Parquet-encoded roads and intersections of the tile window.
    """
    window_roads, window_intersections = tile_window(roads, intersections, x, y, z)
    return frame_to_bytes(window_roads), frame_to_bytes(window_intersections)


def decode_tile(road_bytes, intersection_bytes):
    """Inverse of `encode_tile`."""
    return frame_from_bytes(road_bytes), frame_from_bytes(intersection_bytes)

