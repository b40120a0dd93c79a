"""
OpenStreetMap file reader (.osm, .osm.pbf) driving a `GraphCompiler`.

The file is read twice: once for relations (membership scan and restriction
/ street-name attachment), then for nodes and ways with node locations
resolved, so that every node and way sees its complete relation context.
"""

import os
import warnings

import osmium

from routegraph.compiler import GraphCompiler
from routegraph.entities import Node, Way, Relation, Member


def _tags(obj):
    return {t.k: t.v for t in obj.tags}


class _RelationPass(osmium.SimpleHandler):
    def __init__(self, compiler):
        super().__init__()
        self.compiler = compiler
        self.count = 0

    def relation(self, r):
        self.count += 1
        relation = Relation(
            id=r.id,
            tags=_tags(r),
            members=[Member(m.type, m.ref, m.role) for m in r.members],
        )
        self.compiler.collect_relation_members(relation)
        self.compiler.visit_relation(relation)


class _NodeWayPass(osmium.SimpleHandler):
    def __init__(self, compiler):
        super().__init__()
        self.compiler = compiler
        self.unresolved_ways = 0

    def node(self, n):
        if len(n.tags) == 0 or not n.location.valid():
            return
        self.compiler.visit_node(Node(n.id, n.location.lon, n.location.lat, _tags(n)))

    def way(self, w):
        if len(w.tags) == 0:
            return
        coords = []
        node_ids = []
        for ref in w.nodes:
            if not ref.location.valid():
                self.unresolved_ways += 1
                return
            coords.append((ref.location.lon, ref.location.lat))
            node_ids.append(ref.ref)
        self.compiler.visit_way(Way(w.id, coords, _tags(w), node_ids))


def read_osm_file(path, compiler=None, **kwargs):
    """
    Compile an OSM extract.

    Parameters
    ----------
    path : str or Path
        Path to an .osm, .osm.bz2 or .osm.pbf file.
    compiler : GraphCompiler, optional
        Compiler to feed; a new one is created (with ``**kwargs``) if None.

    Returns
    -------
    GraphCompiler
        The compiler, with its store filled.
    """
    path = str(path)
    if not os.path.exists(path):
        raise FileNotFoundError(f"OSM file not found: {path}")
    if compiler is None:
        compiler = GraphCompiler(**kwargs)

    relations = _RelationPass(compiler)
    relations.apply_file(path)

    nodes_ways = _NodeWayPass(compiler)
    nodes_ways.apply_file(path, locations=True)

    if nodes_ways.unresolved_ways:
        warnings.warn(
            f"{nodes_ways.unresolved_ways} ways reference nodes without a location "
            f"in {path} and were skipped; the extract may be clipped."
        )
    return compiler
