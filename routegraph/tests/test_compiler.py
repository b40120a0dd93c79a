"""
Tests for the ingestion visitor and the geometry store it fills.
"""

import pytest
import geopandas as gpd
import pandas as pd

from routegraph.compiler import GraphCompiler, compile_entities
from routegraph.entities import Member, Node, Relation, Way

# ~111 m x ~111 m at the equator: far above the POI area threshold.
LARGE = [(0.0, 0.0), (0.001, 0.0), (0.001, 0.001), (0.0, 0.001), (0.0, 0.0)]
# ~11 m x ~11 m: collapses to its centroid.
SMALL = [(0.0, 0.0), (0.0001, 0.0), (0.0001, 0.0001), (0.0, 0.0001), (0.0, 0.0)]


@pytest.fixture
def entities():
    return [
        Way(10, [(0.0, 0.0), (0.002, 0.0)], {'highway': 'primary', 'name': 'A', 'source': 'survey'}),
        Way(11, [(0.001, -0.001), (0.001, 0.001)], {'highway': 'residential'}),
        Way(20, SMALL, {'amenity': 'kiosk'}, [1, 2, 3, 4, 1]),
        Way(21, LARGE, {'leisure': 'park'}, [5, 6, 7, 8, 5]),
        Node(1, 0.0005, 0.0005, {'addr:housenumber': '4', 'addr:street': 'Old'}),
        Node(2, 0.0, 0.0, {'created_by': 'JOSM'}),
        Relation(500, {'type': 'restriction', 'restriction': 'no_left_turn'},
                 [Member('w', 10, 'from'), Member('w', 11, 'to')]),
        Relation(900, {'type': 'associatedStreet', 'name': 'Main Street'},
                 [Member('w', 10, 'street'), Member('n', 1, 'house')]),
    ]


def test_compile_tables(entities):
    store = compile_entities(entities)
    roads = store.roads_frame()
    assert isinstance(roads, gpd.GeoDataFrame)
    assert roads['way_id'].tolist() == [10, 11]
    assert roads.loc[0, 'tags'] == {'highway': 'primary', 'name': 'A', 'addr:street': 'Main Street'}
    assert roads.loc[0, 'rel_ids'] == [500]
    assert roads.loc[0, 'length_m'] == pytest.approx(222.6, rel=0.01)
    assert set(roads.geometry.geom_type) == {'LineString'}

    restrictions = store.restrictions_frame()
    assert isinstance(restrictions, pd.DataFrame)
    assert restrictions['relation_id'].tolist() == [500]
    assert restrictions.loc[0, 'from_way_id'] == 10
    assert restrictions.loc[0, 'to_way_id'] == 11


def test_poi_order_and_geometry(entities):
    poi = compile_entities(entities).poi_frame()
    assert poi['id'].tolist() == [1, 2, 3]
    # Small way POIs first, then large way POIs, then node POIs.
    assert poi['way_id'].tolist()[:2] == [20, 21]
    assert pd.isna(poi.loc[2, 'way_id'])
    assert poi.loc[2, 'node_id'] == 1
    assert pd.isna(poi.loc[0, 'node_id'])
    assert poi.geometry.geom_type.tolist() == ['Point', 'Polygon', 'Point']


def test_associated_street_overrides_node_address(entities):
    poi = compile_entities(entities).poi_frame()
    node_row = poi.iloc[2]
    assert node_row['node_id'] == 1
    assert node_row['tags']['addr:street'] == 'Main Street'


def test_stats(entities):
    compiler = GraphCompiler()
    compiler.compile(entities)
    assert compiler.stats['road'] == 2
    assert compiler.stats['way_poi'] == 2
    assert compiler.stats['node_poi'] == 1
    assert compiler.stats['dropped_empty'] == 1
    assert compiler.stats['restriction'] == 1


def test_revisit_replaces_row():
    compiler = GraphCompiler()
    compiler.visit_way(Way(10, [(0, 0), (0.001, 0)], {'highway': 'primary'}))
    compiler.visit_way(Way(10, [(0, 0), (0.001, 0)], {'highway': 'secondary'}))
    roads = compiler.store.roads_frame()
    assert len(roads) == 1
    assert roads.loc[0, 'tags'] == {'highway': 'secondary'}


def test_revisit_can_remove_row():
    compiler = GraphCompiler()
    compiler.visit_node(Node(1, 0.0, 0.0, {'amenity': 'cafe'}))
    compiler.visit_node(Node(1, 0.0, 0.0, {'source': 'survey'}))
    assert len(compiler.store.poi_frame()) == 0


def test_relation_after_members_in_stream():
    # Relations come last in OSM files; they are still applied first.
    entities = [
        Way(10, [(0, 0), (0.001, 0)], {'highway': 'primary'}),
        Relation(7, {'type': 'restriction'}, [Member('w', 10, 'from'), Member('w', 12, 'to')]),
    ]
    roads = compile_entities(entities).roads_frame()
    assert roads.loc[0, 'rel_ids'] == [7]


def test_callable_source_is_called_per_pass():
    calls = []

    def source():
        calls.append(1)
        return iter([Node(1, 0.0, 0.0, {'shop': 'bakery'})])

    store = GraphCompiler().compile(source)
    assert len(calls) == 2
    assert len(store.poi_frame()) == 1


def test_unsupported_entity():
    with pytest.raises(TypeError):
        GraphCompiler().compile([object()])


def test_clear(entities):
    compiler = GraphCompiler()
    compiler.compile(entities)
    compiler.clear()
    assert len(compiler.store) == 0
    assert len(compiler.store.restrictions_frame()) == 0
    assert not compiler.stats


def test_empty_tables():
    store = compile_entities([])
    assert len(store.roads_frame()) == 0
    assert list(store.poi_frame().columns) == ['id', 'way_id', 'node_id', 'tags', 'geometry']
    assert len(store.restrictions_frame()) == 0


def test_roads_are_open():
    store = compile_entities([
        Way(1, [(0, 0), (0.001, 0), (0.001, 0.001), (0, 0)], {'highway': 'residential'}, [1, 2, 3, 4]),
        Way(2, [(0, 0), (0.001, 0)], {'highway': 'residential'}, [1, 2]),
    ])
    roads = store.roads_frame()
    assert roads['way_id'].tolist() == [2]
    assert not roads.geometry.is_closed.any()


def test_street_name_can_complete_an_address():
    # A house number alone becomes an address once the street is inherited.
    entities = [
        Node(6, 0.0, 0.0, {'addr:housenumber': '7'}),
        Relation(900, {'type': 'associatedStreet', 'name': 'Main Street'}, [Member('n', 6, 'house')]),
    ]
    poi = compile_entities(entities).poi_frame()
    assert poi.loc[0, 'tags'] == {'addr:housenumber': '7', 'addr:street': 'Main Street'}
