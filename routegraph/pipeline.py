"""
Staged compilation pipeline.

Stages run in a fixed dependency order and communicate only through the
tables they persist in an output directory:

    classify -> crossings -> transitions -> admin        tiles (independent)

Each stage reads its inputs, discards its previous output together with the
outputs of later stages derived from it, recomputes and writes atomically, so
a failed stage leaves no partial or stale table behind and can simply be
re-run.
"""

import os
from pathlib import Path

from routegraph.admin import enrich_pois, load_admin_polygons
from routegraph.compiler import GraphCompiler
from routegraph.constants import PLACE_TYPES, POI_AREA_THRESHOLD_M2, TILE_COLUMNS, TILE_ZOOM
from routegraph.intersections import find_intersections, build_transitions
from routegraph.io import save_table, load_table
from routegraph.store import empty_frame
from routegraph.tiles import build_tile_grid

# stage -> (input tables, output tables)
STAGES = {
    'classify': ((), ('roads', 'poi', 'restrictions')),
    'crossings': (('roads',), ('crossings',)),
    'transitions': (('roads', 'crossings', 'restrictions'), ('intersections',)),
    'admin': (('poi',), ('poi',)),
    'tiles': ((), ('tiles',)),
}

TABLE_FORMATS = ('parquet', 'geojson')

STAGE_ORDER = ('classify', 'crossings', 'transitions', 'admin', 'tiles')


class Pipeline:
    """
    Compile a routable road network into an output directory.

    Parameters
    ----------
    output_dir : str or Path
        Directory holding one file per table.
    fmt : str, default "parquet"
        File extension of the tables, 'parquet' or 'geojson'.

    Examples
    --------
    >>> pipeline = Pipeline("out")
    >>> pipeline.run("city.osm.pbf", admin_polygons="admins.geojson")  # doctest: +SKIP
    """

    def __init__(self, output_dir, fmt='parquet'):
        self.output_dir = Path(output_dir)
        self.fmt = fmt.lstrip('.')
        if self.fmt not in TABLE_FORMATS:
            raise ValueError(f"Unsupported table format '{fmt}'; expected one of {TABLE_FORMATS}")

    def path(self, table):
        return self.output_dir / f"{table}.{self.fmt}"

    def exists(self, table):
        return self.path(table).exists()

    def load(self, table):
        if not self.exists(table):
            raise FileNotFoundError(
                f"Table '{table}' not found in {self.output_dir}; run the stage producing it first."
            )
        return load_table(self.path(table))

    def _discard(self, tables):
        for table in tables:
            if self.exists(table):
                os.remove(self.path(table))

    def _stale_tables(self, name):
        # Outputs of later stages computed, directly or not, from this stage's outputs.
        _, outputs = STAGES[name]
        changed = set(outputs)
        stale = []
        for later in STAGE_ORDER[STAGE_ORDER.index(name) + 1:]:
            inputs, later_outputs = STAGES[later]
            if changed.intersection(inputs):
                changed.update(later_outputs)
                stale.extend(t for t in later_outputs if t not in outputs)
        return stale

    def _run_stage(self, name, compute):
        inputs, outputs = STAGES[name]
        try:
            frames = {table: self.load(table) for table in inputs}
            self._discard([t for t in outputs if t not in inputs])
            self._discard(self._stale_tables(name))
            results = compute(frames)
            for table, frame in results.items():
                save_table(frame, self.path(table))
        except Exception as e:
            raise RuntimeError(f"Stage '{name}' failed: {e}") from e
        return {table: len(frame) for table, frame in results.items()}

    # -- stages ----------------------------------------------------------

    def classify(self, source, area_threshold_m2=POI_AREA_THRESHOLD_M2, **kwargs):
        """
        Classify a raw entity source into `roads`, `poi` and `restrictions`.

        `source` is a path to an OSM file, a filled `GraphCompiler`, or an
        iterable of entities (or a callable returning one).
        """
        def compute(frames):
            if isinstance(source, GraphCompiler):
                compiler = source
            elif isinstance(source, (str, Path)):
                from routegraph.osm_reader import read_osm_file
                compiler = read_osm_file(source, **kwargs)
            else:
                compiler = GraphCompiler(**kwargs)
                compiler.compile(source)
            store = compiler.store
            return {
                'roads': store.roads_frame(),
                'poi': store.poi_frame(area_threshold_m2=area_threshold_m2),
                'restrictions': store.restrictions_frame(),
            }
        return self._run_stage('classify', compute)

    def crossings(self):
        return self._run_stage('crossings', lambda f: {'crossings': find_intersections(f['roads'])})

    def transitions(self):
        def compute(frames):
            return {'intersections': build_transitions(frames['roads'], frames['crossings'],
                                                       frames['restrictions'])}
        return self._run_stage('transitions', compute)

    def admin(self, admin_polygons, place_types=PLACE_TYPES):
        """Enrich `poi` with admin place names (a GeoDataFrame or a dataset path)."""
        def compute(frames):
            admins = admin_polygons
            if isinstance(admins, (str, Path)):
                admins = load_admin_polygons(admins)
            return {'poi': enrich_pois(frames['poi'], admins, place_types=place_types)}
        return self._run_stage('admin', compute)

    def tiles(self, z=TILE_ZOOM, bounds=None):
        return self._run_stage('tiles', lambda f: {'tiles': build_tile_grid(z, bounds=bounds)})

    def run(self, source, admin_polygons=None, z=TILE_ZOOM, tile_bounds=None, **kwargs):
        """
        Run every stage in order and return the per-stage table sizes.

        The admin stage is skipped when no admin polygons are given. With
        ``tile_bounds='roads'`` only the tiles covering the compiled roads are
        generated.
        """
        summary = {'classify': self.classify(source, **kwargs)}
        summary['crossings'] = self.crossings()
        summary['transitions'] = self.transitions()
        if admin_polygons is not None:
            summary['admin'] = self.admin(admin_polygons)
        if isinstance(tile_bounds, str) and tile_bounds == 'roads':
            roads = self.load('roads')
            if len(roads) == 0:
                summary['tiles'] = self._run_stage(
                    'tiles', lambda f: {'tiles': empty_frame(TILE_COLUMNS)})
                return summary
            tile_bounds = tuple(roads.total_bounds)
        summary['tiles'] = self.tiles(z=z, bounds=tile_bounds)
        return summary
