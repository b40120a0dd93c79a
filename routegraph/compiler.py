"""
Ingestion visitor turning a raw entity stream into the geometry store.

A source reader calls, per entity, one of `visit_node`, `visit_way`,
`collect_relation_members` (phase 1) or `visit_relation` (phase 2). Every
`GraphCompiler` owns its own `RelationContext` and `GeometryStore`; neither
outlives the run.
"""

from collections import Counter

from routegraph.classify import classify, inherit_street_name, dedupe_consecutive
from routegraph.constants import DEFAULT_CRS, DELETE_KEYS
from routegraph.entities import Node, Way, Relation
from routegraph.relations import RelationContext
from routegraph.store import GeometryStore
from routegraph.tag_filter import make_clean_tags


class GraphCompiler:
    """
    Classify raw entities into roads, POIs and restrictions.

    Parameters
    ----------
    delete_keys : iterable of str, optional
        Tag filter rule set; defaults to `DELETE_KEYS`.
    crs : str, default "EPSG:4326"
        CRS of the raw coordinates.

    Attributes
    ----------
    context : RelationContext
        Relation membership and attachment state for this run.
    store : GeometryStore
        Classified output of this run.
    stats : collections.Counter
        Counts of kept and dropped entities by outcome.
    """

    def __init__(self, delete_keys=DELETE_KEYS, crs=DEFAULT_CRS):
        self._clean = make_clean_tags(delete_keys)
        self.context = RelationContext()
        self.store = GeometryStore(crs=crs)
        self.stats = Counter()

    def clear(self):
        """Discard all run state."""
        self.context.reset()
        self.store.clear()
        self.stats.clear()

    def _prepare_tags(self, member_type, entity):
        tags, empty = self._clean(entity.tags)
        if empty:
            self.stats['dropped_empty'] += 1
            return None
        return inherit_street_name(tags, self.context.street_name_for(member_type, entity.id))

    def visit_node(self, node):
        self.store.discard_node(node.id)
        tags = self._prepare_tags('n', node)
        if tags is None:
            return None
        category = classify(node, tags)
        if category == 'poi':
            self.store.add_node_poi(node.id, tags, node.lon, node.lat)
            self.stats['node_poi'] += 1
        else:
            self.stats['dropped_unclassified'] += 1
        return category

    def visit_way(self, way):
        self.store.discard_way(way.id)
        tags = self._prepare_tags('w', way)
        if tags is None:
            return None
        category = classify(way, tags)
        if category == 'road':
            rel_ids = self.context.restriction_ids_for_way(way.id)
            self.store.add_road(way.id, tags, rel_ids, dedupe_consecutive(way.coords))
            self.stats['road'] += 1
        elif category == 'poi':
            self.store.add_way_poi(way.id, tags, dedupe_consecutive(way.coords))
            self.stats['way_poi'] += 1
        else:
            self.stats['dropped_unclassified'] += 1
        return category

    def collect_relation_members(self, relation):
        return self.context.collect_relation_members(relation)

    def visit_relation(self, relation):
        restriction = self.context.visit_relation(relation)
        if restriction is not None:
            self.store.add_restriction(restriction)
            self.stats['restriction'] += 1
        return restriction

    def compile(self, source):
        """
        Drive the visitor over an in-memory entity source.

        Relations are visited first (membership scan, then content), so that
        street names and restriction membership are known before any node or
        way is classified.

        Parameters
        ----------
        source : iterable or callable
            Entities (`Node`, `Way`, `Relation`). A callable returning a fresh
            iterator is re-invoked for the second pass; any other iterable is
            materialised once.

        Returns
        -------
        GeometryStore
        """
        if callable(source):
            first_pass, second_pass = source(), source()
        else:
            entities = list(source)
            first_pass, second_pass = entities, entities

        for entity in first_pass:
            if isinstance(entity, Relation):
                self.collect_relation_members(entity)
                self.visit_relation(entity)

        for entity in second_pass:
            if isinstance(entity, Node):
                self.visit_node(entity)
            elif isinstance(entity, Way):
                self.visit_way(entity)
            elif not isinstance(entity, Relation):
                raise TypeError(f"Unsupported entity type: {type(entity).__name__}")
        return self.store


def compile_entities(entities, **kwargs):
    """Compile entities with a fresh `GraphCompiler` and return its store."""
    return GraphCompiler(**kwargs).compile(entities)
