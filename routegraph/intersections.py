"""
Road crossings and directed transitions between roads.

`find_intersections` locates every point where two distinct roads meet;
`build_transitions` turns those crossings into directed transition rows with
along-edge distances and restriction context.
"""

import warnings

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from shapely.ops import substring

from routegraph.constants import CROSSING_COLUMNS, INTERSECTION_COLUMNS
from routegraph.store import empty_frame, geodesic_length


def find_intersections(roads):
    """
    Find all point-like crossings between pairs of distinct roads.

    Candidate pairs come from a spatial-index-assisted self join. The
    intersection of each unordered pair is split into its parts; only point
    parts are kept, so roads overlapping collinearly along a shared segment
    produce no crossing. Each point yields two directed rows, (A -> B) and
    (B -> A).

    Parameters
    ----------
    roads : gpd.GeoDataFrame
        The `roads` table, with `way_id` and LineString geometries.

    Returns
    -------
    gpd.GeoDataFrame
        Columns `way_id`, `transition_to_way_id`, `geometry` (Point), unique
        per (way_id, transition_to_way_id, point).
    """
    crs = roads.crs
    if len(roads) < 2:
        return empty_frame(CROSSING_COLUMNS, crs)

    left = roads[['way_id', 'geometry']].reset_index(drop=True)
    pairs = gpd.sjoin(left, left, how='inner', predicate='intersects')
    pairs = pairs[pairs['way_id_left'] < pairs['way_id_right']]
    if len(pairs) == 0:
        return empty_frame(CROSSING_COLUMNS, crs)

    right_geoms = np.asarray(left.geometry.values)[pairs['index_right'].to_numpy()]
    shared = shapely.intersection(np.asarray(pairs.geometry.values), right_geoms)

    parts = gpd.GeoDataFrame({
        'way_id': pairs['way_id_left'].to_numpy(),
        'transition_to_way_id': pairs['way_id_right'].to_numpy(),
    }, geometry=shared, crs=crs)
    parts = parts.explode(index_parts=False, ignore_index=True)
    # Linear parts are shared segments, not transitions.
    parts = parts[(parts.geometry.geom_type == 'Point') & ~parts.geometry.is_empty]

    reverse = parts.rename(columns={'way_id': 'transition_to_way_id',
                                    'transition_to_way_id': 'way_id'})
    crossings = gpd.GeoDataFrame(pd.concat([parts, reverse[parts.columns]], ignore_index=True),
                                 geometry='geometry', crs=crs)
    if len(crossings) == 0:
        return empty_frame(CROSSING_COLUMNS, crs)

    crossings['_x'] = crossings.geometry.x
    crossings['_y'] = crossings.geometry.y
    crossings = crossings.drop_duplicates(subset=['way_id', 'transition_to_way_id', '_x', '_y'])
    crossings = crossings.sort_values(['way_id', 'transition_to_way_id', '_x', '_y'])
    crossings = crossings.drop(columns=['_x', '_y']).reset_index(drop=True)
    crossings['way_id'] = crossings['way_id'].astype('int64')
    crossings['transition_to_way_id'] = crossings['transition_to_way_id'].astype('int64')
    return crossings[CROSSING_COLUMNS]


def distance_along(line, point):
    """
    Geodesic distance in metres from the start of `line` to the projection of
    `point` on it, bounded by the length of the line.
    """
    total = geodesic_length(line)
    fraction = line.project(point, normalized=True)
    if not fraction > 0:
        return 0.0
    if fraction >= 1:
        return total
    prefix = substring(line, 0.0, fraction, normalized=True)
    return min(geodesic_length(prefix), total)


def _restriction_lookup(restrictions):
    # (from_way_id, to_way_id) -> tags, lowest relation id first.
    if restrictions is None or len(restrictions) == 0:
        return {}
    usable = restrictions.dropna(subset=['from_way_id', 'to_way_id'])
    usable = usable.sort_values('relation_id')
    lookup = {}
    duplicated = []
    for row in usable.itertuples(index=False):
        key = (int(row.from_way_id), int(row.to_way_id))
        if key in lookup:
            duplicated.append(int(row.relation_id))
            continue
        lookup[key] = row.tags
    if duplicated:
        warnings.warn(
            f"Restrictions {duplicated} repeat an existing (from, to) way pair; "
            "only the lowest relation id is applied."
        )
    return lookup


def build_transitions(roads, crossings, restrictions=None):
    """
    Build directed transition rows from road crossings.

    Parameters
    ----------
    roads : gpd.GeoDataFrame
        The `roads` table.
    crossings : gpd.GeoDataFrame
        Output of `find_intersections`.
    restrictions : pd.DataFrame, optional
        The `restrictions` table. A restriction applies to a row when its
        `from_way_id` / `to_way_id` equal the row's `way_id` /
        `transition_to_way_id`. Restrictions with missing references never
        apply.

    Returns
    -------
    gpd.GeoDataFrame
        The `intersections` table: distances along both roads in metres,
        both roads' tags, `restriction_tags` (dict or None) and the crossing
        point.
    """
    crs = roads.crs if roads.crs is not None else crossings.crs
    if len(crossings) == 0:
        return empty_frame(INTERSECTION_COLUMNS, crs)

    geoms = dict(zip(roads['way_id'], roads.geometry))
    tags = dict(zip(roads['way_id'], roads['tags']))
    lookup = _restriction_lookup(restrictions)

    way_ids = crossings['way_id'].to_numpy()
    to_way_ids = crossings['transition_to_way_id'].to_numpy()
    points = list(crossings.geometry)

    transitions = gpd.GeoDataFrame({
        'way_id': pd.Series(way_ids, dtype='int64'),
        'transition_to_way_id': pd.Series(to_way_ids, dtype='int64'),
        'distance_along_way': [distance_along(geoms[w], p) for w, p in zip(way_ids, points)],
        'transition_to_distance_along_way': [distance_along(geoms[t], p)
                                             for t, p in zip(to_way_ids, points)],
        'way_tags': [tags[w] for w in way_ids],
        'transition_to_way_tags': [tags[t] for t in to_way_ids],
        'restriction_tags': [lookup.get((int(w), int(t))) for w, t in zip(way_ids, to_way_ids)],
    }, geometry=points, crs=crs)
    return transitions[INTERSECTION_COLUMNS]


def compile_intersections(roads, restrictions=None):
    """Resolve crossings of `roads` and build the `intersections` table."""
    return build_transitions(roads, find_intersections(roads), restrictions)
