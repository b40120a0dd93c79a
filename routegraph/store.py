"""
In-memory store of classified roads, points of interest and restrictions,
exposed as (Geo)DataFrames for set-based spatial processing.
"""

import geopandas as gpd
import pandas as pd
from pyproj import Geod
from shapely.geometry import LineString, Point, Polygon

from routegraph.constants import (
    DEFAULT_CRS, GEOD_ELLPS, POI_AREA_THRESHOLD_M2,
    ROAD_COLUMNS, POI_COLUMNS, RESTRICTION_COLUMNS
)

_GEOD = Geod(ellps=GEOD_ELLPS)


def geodesic_length(geom):
    """Length of a lon/lat geometry in metres on the WGS84 ellipsoid."""
    if geom is None or geom.is_empty or geom.geom_type == 'Point':
        return 0.0
    return float(_GEOD.geometry_length(geom))


def geodesic_area(geom):
    """Unsigned area of a lon/lat geometry in square metres."""
    if geom is None or geom.is_empty:
        return 0.0
    area, _ = _GEOD.geometry_area_perimeter(geom)
    return abs(float(area))


def empty_frame(columns, crs=DEFAULT_CRS):
    # Typed empty GeoDataFrame with the given column layout.
    data = {c: pd.Series([], dtype=object) for c in columns if c != 'geometry'}
    return gpd.GeoDataFrame(data, geometry=gpd.GeoSeries([], crs=crs), crs=crs)[columns]


class GeometryStore:
    """
    Holds the classified entities of a compilation run.

    Rows are keyed by entity id, so classifying an entity again in the same
    run replaces its previous row. Frames are built on demand.

    Parameters
    ----------
    crs : str, default "EPSG:4326"
        CRS of the raw coordinates.
    """

    def __init__(self, crs=DEFAULT_CRS):
        self.crs = crs
        self.clear()

    def clear(self):
        self._roads = {}
        self._way_pois = {}
        self._node_pois = {}
        self._restrictions = {}

    def __len__(self):
        return len(self._roads) + len(self._way_pois) + len(self._node_pois)

    # -- writes ----------------------------------------------------------

    def add_road(self, way_id, tags, rel_ids, coords):
        self._roads[int(way_id)] = (dict(tags), list(rel_ids), LineString(coords))

    def add_way_poi(self, way_id, tags, coords):
        self._way_pois[int(way_id)] = (dict(tags), Polygon(coords))

    def add_node_poi(self, node_id, tags, lon, lat):
        self._node_pois[int(node_id)] = (dict(tags), Point(lon, lat))

    def add_restriction(self, restriction):
        self._restrictions[int(restriction.relation_id)] = restriction

    def discard_way(self, way_id):
        self._roads.pop(int(way_id), None)
        self._way_pois.pop(int(way_id), None)

    def discard_node(self, node_id):
        self._node_pois.pop(int(node_id), None)

    # -- frames ----------------------------------------------------------

    def roads_frame(self):
        """Return the `roads` table as a GeoDataFrame ordered by way id."""
        if not self._roads:
            return empty_frame(ROAD_COLUMNS, self.crs)
        way_ids = sorted(self._roads)
        geoms = [self._roads[w][2] for w in way_ids]
        roads = gpd.GeoDataFrame({
            'way_id': pd.Series(way_ids, dtype='int64'),
            'tags': [self._roads[w][0] for w in way_ids],
            'rel_ids': [self._roads[w][1] for w in way_ids],
            'length_m': [geodesic_length(g) for g in geoms],
        }, geometry=geoms, crs=self.crs)
        return roads[ROAD_COLUMNS]

    def poi_frame(self, area_threshold_m2=POI_AREA_THRESHOLD_M2):
        """
        Consolidate way and node POIs into the `poi` table.

        Closed-way POIs with a geodesic area below `area_threshold_m2` are
        reduced to their centroid; larger ones keep their polygon. Ids are
        assigned from 1 in the order: small way POIs, large way POIs, node
        POIs. Exactly one of `way_id` / `node_id` is set on every row.
        """
        small, large = [], []
        for way_id in sorted(self._way_pois):
            tags, polygon = self._way_pois[way_id]
            if geodesic_area(polygon) < area_threshold_m2:
                small.append((way_id, None, tags, polygon.centroid))
            else:
                large.append((way_id, None, tags, polygon))
        nodes = [(None, node_id, self._node_pois[node_id][0], self._node_pois[node_id][1])
                 for node_id in sorted(self._node_pois)]
        rows = small + large + nodes
        if not rows:
            return empty_frame(POI_COLUMNS, self.crs)

        poi = gpd.GeoDataFrame({
            'id': pd.Series(range(1, len(rows) + 1), dtype='int64'),
            'way_id': pd.array([r[0] for r in rows], dtype='Int64'),
            'node_id': pd.array([r[1] for r in rows], dtype='Int64'),
            'tags': [r[2] for r in rows],
        }, geometry=[r[3] for r in rows], crs=self.crs)
        return poi[POI_COLUMNS]

    def restrictions_frame(self):
        """Return the `restrictions` table (no geometry) ordered by relation id."""
        rel_ids = sorted(self._restrictions)
        records = [self._restrictions[r] for r in rel_ids]
        return pd.DataFrame({
            'relation_id': pd.Series([r.relation_id for r in records], dtype='int64'),
            'ref': pd.Series([r.ref for r in records], dtype=object),
            'from_way_id': pd.array([r.from_way_id for r in records], dtype='Int64'),
            'to_way_id': pd.array([r.to_way_id for r in records], dtype='Int64'),
            'tags': pd.Series([r.tags for r in records], dtype=object),
            'members': pd.Series([r.members for r in records], dtype=object),
        })[RESTRICTION_COLUMNS]
