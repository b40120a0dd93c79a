"""
Administrative place enrichment of points of interest.

For every place type, POIs are spatially joined against the admin polygons
of that type and the names of all containing polygons are merged into the
POI tags under ``wof:<place_type>`` as a JSON-encoded array.
"""

import json
import os
import warnings

import geopandas as gpd
import pandas as pd

from routegraph.constants import ADMIN_COLUMNS, ADMIN_TAG_PREFIX, DEFAULT_CRS, PLACE_TYPES


def admin_tag_key(place_type):
    return f"{ADMIN_TAG_PREFIX}{place_type}"


def _check_place_types(place_types):
    unknown = [p for p in place_types if p not in PLACE_TYPES]
    if unknown:
        raise ValueError(f"Unknown place types {unknown}; expected a subset of {list(PLACE_TYPES)}")


def place_names(poi, admin_polygons, place_type):
    """
    Names of the admin polygons of one place type containing each POI.

    Parameters
    ----------
    poi : gpd.GeoDataFrame
        The `poi` table.
    admin_polygons : gpd.GeoDataFrame
        Admin polygons with `id`, `place_type`, `name` and geometry.
    place_type : str
        Place type to join against.

    Returns
    -------
    pd.Series
        Indexed by POI `id`, a list of names per POI in polygon order.
        POIs with no containing polygon are absent.
    """
    admins = admin_polygons[(admin_polygons['place_type'] == place_type)
                            & admin_polygons['name'].notna()
                            & (admin_polygons['name'] != '')]
    if len(admins) == 0 or len(poi) == 0:
        return pd.Series(dtype=object)
    if admins.crs is not None and poi.crs is not None and admins.crs != poi.crs:
        admins = admins.to_crs(poi.crs)

    admins = admins[['name', 'geometry']].reset_index(drop=True)
    admins['_order'] = range(len(admins))
    joined = gpd.sjoin(poi[['id', 'geometry']], admins, how='inner', predicate='intersects')
    joined = joined.sort_values(['id', '_order'], kind='stable')
    return joined.groupby('id', sort=True)['name'].agg(list)


def merge_tags(tags, key, value):
    # Key-wise, non-destructive merge: only `key` changes.
    result = dict(tags) if tags else {}
    if value is None:
        result.pop(key, None)
    else:
        result[key] = value
    return result


def enrich_pois(poi, admin_polygons, place_types=PLACE_TYPES):
    """
    Merge containing admin place names into POI tags.

    Enrichment for a place type first removes that type's key from every POI
    and then adds it back where at least one polygon matches, so re-running
    replaces only that key; all other tags are preserved.

    Parameters
    ----------
    poi : gpd.GeoDataFrame
        The `poi` table. Not modified.
    admin_polygons : gpd.GeoDataFrame
        Admin polygons with `place_type`, `name` and geometry.
    place_types : sequence of str, default PLACE_TYPES
        Place types to enrich.

    Returns
    -------
    gpd.GeoDataFrame
        A copy of `poi` with enriched tags.
    """
    _check_place_types(place_types)
    missing = {'place_type', 'name'} - set(admin_polygons.columns)
    if missing:
        raise ValueError(f"Admin polygons are missing required columns: {sorted(missing)}")

    result = poi.copy()
    tags = {pid: t for pid, t in zip(result['id'], result['tags'])}
    for place_type in place_types:
        key = admin_tag_key(place_type)
        names = place_names(result, admin_polygons, place_type)
        for pid in tags:
            matched = names.get(pid)
            value = json.dumps(list(matched), ensure_ascii=False) if matched is not None else None
            tags[pid] = merge_tags(tags[pid], key, value)
    result['tags'] = [tags[pid] for pid in result['id']]
    return result


def load_admin_polygons(path, layer=None, crs=DEFAULT_CRS):
    """
    Load a prepared admin polygon dataset.

    The dataset must provide `place_type`, `name` and geometry columns; `id`
    defaults to the row number when absent. Supported formats: .geojson,
    .json, .gpkg, .shp, .parquet, .geoparquet.
    """
    ext = os.path.splitext(str(path))[1].lower()
    if ext in ('.parquet', '.geoparquet'):
        admins = gpd.read_parquet(path)
    elif ext in ('.geojson', '.json', '.gpkg', '.shp'):
        kwargs = {'layer': layer} if (ext == '.gpkg' and layer is not None) else {}
        admins = gpd.read_file(path, **kwargs)
    else:
        raise ValueError(f"Unsupported geodata format: {ext}")
    return _normalize_admins(admins, crs)


def admin_polygons_from_wof(path, crs=DEFAULT_CRS):
    """
    Load Who's On First GeoJSON features as admin polygons.

    Place type and name come from the `wof:placetype` and `wof:name`
    feature properties; the `wof:id` property is used as `id` when present.
    """
    admins = gpd.read_file(path)
    renames = {'wof:placetype': 'place_type', 'wof:name': 'name', 'wof:id': 'id'}
    admins = admins.rename(columns={k: v for k, v in renames.items() if k in admins.columns})
    return _normalize_admins(admins, crs)


def _normalize_admins(admins, crs):
    missing = {'place_type', 'name'} - set(admins.columns)
    if missing:
        raise ValueError(f"Admin polygons are missing required columns: {sorted(missing)}")
    if 'id' not in admins.columns:
        warnings.warn("Admin polygons have no 'id' column; using row numbers as ids.")
        admins = admins.assign(id=range(len(admins)))
    if admins.crs is None:
        warnings.warn(f"Admin polygon CRS unspecified; assuming {crs}.")
        admins = admins.set_crs(crs)
    elif admins.crs != crs:
        admins = admins.to_crs(crs)
    admins = admins[admins.geometry.geom_type.isin(['Polygon', 'MultiPolygon'])]
    return admins[ADMIN_COLUMNS].reset_index(drop=True)
