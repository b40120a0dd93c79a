"""
Persistence of compiled tables (GeoParquet, GeoJSON, GeoPackage).

Tag maps and member lists are stored as JSON text; they are decoded back to
Python objects on load.
"""

import json
import os
from io import BytesIO

import geopandas as gpd
import pandas as pd

from routegraph.constants import JSON_COLUMNS

_GEO_EXTENSIONS = ('.parquet', '.geoparquet', '.geojson', '.json', '.gpkg')


def _encode(value):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _decode(value):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, (dict, list)):
        return value
    return json.loads(value)


def to_storage(frame, encode_lists=False):
    """Copy of `frame` with JSON columns (and optionally list columns) as text."""
    result = frame.copy()
    for col in JSON_COLUMNS:
        if col in result.columns:
            result[col] = result[col].map(_encode).astype(object)
    if encode_lists and 'rel_ids' in result.columns:
        result['rel_ids'] = result['rel_ids'].map(lambda v: _encode(list(v)) if v is not None else None)
    return result


def from_storage(frame):
    """Inverse of `to_storage`."""
    result = frame.copy()
    for col in JSON_COLUMNS:
        if col in result.columns:
            result[col] = result[col].map(_decode).astype(object)
    if 'rel_ids' in result.columns:
        result['rel_ids'] = result['rel_ids'].map(
            lambda v: [int(i) for i in (_decode(v) if isinstance(v, str) else v)] if v is not None else []
        ).astype(object)
    return result


def _write(frame, path, ext, layer):
    is_geo = isinstance(frame, gpd.GeoDataFrame)
    if ext in ('.parquet', '.geoparquet'):
        to_storage(frame).to_parquet(path, index=False)
    elif not is_geo and ext in ('.geojson', '.json'):
        to_storage(frame).to_json(path, orient='split', index=False)
    elif not is_geo:
        raise ValueError(f"Tables without geometry can only be written as .parquet or .json, got {ext}")
    elif ext in ('.geojson', '.json'):
        to_storage(frame, encode_lists=True).to_file(path, driver='GeoJSON')
    elif ext == '.gpkg':
        to_storage(frame, encode_lists=True).to_file(path, layer=(layer or 'data'), driver='GPKG')


def save_table(frame, path, layer=None):
    """
    Persist a compiled table based on file extension.

    The table is written to a temporary file next to `path` and moved into
    place only when complete, so a failed write never leaves a partial file
    at `path`.

    Supported formats:
    - .parquet/.geoparquet -> (Geo)Parquet
    - .geojson/.json -> GeoJSON (split-oriented JSON for tables without geometry)
    - .gpkg -> GeoPackage (layer optional, defaults to 'data')
    """
    if frame is None:
        raise ValueError("frame cannot be None")
    path = str(path)
    ext = os.path.splitext(path)[1].lower()
    if ext not in _GEO_EXTENSIONS:
        raise ValueError(f"Unsupported geodata format: {ext}")
    directory = os.path.dirname(path) or '.'
    os.makedirs(directory, exist_ok=True)
    tmp_path = os.path.join(directory, f".{os.path.basename(path)}.tmp{ext}")
    try:
        _write(frame, tmp_path, ext, layer)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def load_table(path, layer=None):
    """Load a table written by `save_table`."""
    path = str(path)
    ext = os.path.splitext(path)[1].lower()
    if ext in ('.parquet', '.geoparquet'):
        try:
            frame = gpd.read_parquet(path)
        except ValueError:
            # No geo metadata: a plain table such as `restrictions`.
            frame = pd.read_parquet(path)
    elif ext in ('.geojson', '.json'):
        with open(path, encoding='utf-8') as f:
            content = json.load(f)
        if isinstance(content, dict) and 'columns' in content and 'data' in content:
            # Table without geometry, written with orient='split'.
            frame = pd.DataFrame(content['data'], columns=content['columns'])
        else:
            frame = gpd.read_file(path)
    elif ext == '.gpkg':
        frame = gpd.read_file(path, **({'layer': layer} if layer is not None else {}))
    else:
        raise ValueError(f"Unsupported geodata format: {ext}")
    return from_storage(frame)


def frame_to_bytes(frame):
    """Serialise a table to an in-memory Parquet payload."""
    buffer = BytesIO()
    to_storage(frame).to_parquet(buffer, index=False)
    return buffer.getvalue()


def frame_from_bytes(data):
    """Inverse of `frame_to_bytes`."""
    return from_storage(gpd.read_parquet(BytesIO(data)))
