"""
Tests for classify - shape detection and the road / POI rule table.
"""

import pytest

from routegraph.classify import (
    classify,
    dedupe_consecutive,
    entity_shape,
    inherit_street_name,
)
from routegraph.entities import Node, Way

SQUARE = [(0.0, 0.0), (0.001, 0.0), (0.001, 0.001), (0.0, 0.001), (0.0, 0.0)]


def test_dedupe_consecutive():
    assert dedupe_consecutive([(0, 0), (0, 0), (1, 1), (1, 1), (0, 0)]) == [
        (0.0, 0.0), (1.0, 1.0), (0.0, 0.0)
    ]


def test_shapes():
    assert entity_shape(Node(1, 0.0, 0.0, {})) == 'point'
    assert entity_shape(Way(1, [(0, 0), (1, 1)], {})) == 'line'
    assert entity_shape(Way(2, SQUARE, {}, [1, 2, 3, 4, 1])) == 'area'


def test_degenerate_ways_have_no_shape():
    # Single vertex after removing repeats.
    assert entity_shape(Way(1, [(0, 0), (0, 0)], {}, [1, 2])) is None
    # Closed ring with only two distinct vertices.
    assert entity_shape(Way(2, [(0, 0), (1, 1), (0, 0)], {}, [1, 2, 1])) is None


def test_closed_way_detected_by_node_ids():
    way = Way(1, [(0, 0), (0.001, 0), (0.001, 0.001)], {}, [1, 2, 1])
    assert way.is_closed
    assert not Way(2, SQUARE, {}, [1, 2, 3, 4, 5]).is_closed


def test_ring_with_distinct_end_nodes_is_not_a_road():
    # First and last node ids differ but share a position.
    way = Way(1, [(0, 0), (0.001, 0), (0.001, 0.001), (0, 0)], {'highway': 'residential'}, [1, 2, 3, 4])
    assert entity_shape(way) is None
    assert classify(way) is None


def test_road():
    way = Way(1, [(0, 0), (0.001, 0)], {'highway': 'residential'})
    assert classify(way) == 'road'


def test_closed_highway_area_is_not_a_road():
    way = Way(1, SQUARE, {'highway': 'pedestrian', 'area': 'yes'}, [1, 2, 3, 4, 1])
    assert classify(way) is None


@pytest.mark.parametrize("tags", [
    {'amenity': 'cafe'},
    {'shop': 'bakery'},
    {'addr:street': 'Main Street', 'addr:housenumber': '12'},
])
def test_node_poi(tags):
    assert classify(Node(1, 0.0, 0.0, tags)) == 'poi'


def test_partial_address_is_not_a_poi():
    assert classify(Node(1, 0.0, 0.0, {'addr:housenumber': '12'})) is None


def test_closed_way_poi():
    way = Way(1, SQUARE, {'building': 'yes', 'amenity': 'school'}, [1, 2, 3, 4, 1])
    assert classify(way) == 'poi'


def test_open_way_with_poi_tags_is_discarded():
    way = Way(1, [(0, 0), (0.001, 0)], {'amenity': 'bench'})
    assert classify(way) is None


def test_first_matching_rule_wins():
    way = Way(1, [(0, 0), (0.001, 0)], {'highway': 'service', 'amenity': 'parking'})
    assert classify(way) == 'road'


def test_custom_rules():
    rules = (('building', lambda shape, tags: shape == 'area' and 'building' in tags),)
    way = Way(1, SQUARE, {'building': 'yes'}, [1, 2, 3, 4, 1])
    assert classify(way, rules=rules) == 'building'


def test_explicit_tags_override_entity_tags():
    node = Node(1, 0.0, 0.0, {'amenity': 'cafe'})
    assert classify(node, tags={}) is None


def test_inherit_street_name():
    tags = {'addr:street': 'Old Road', 'addr:housenumber': '3'}
    assert inherit_street_name(tags, 'New Road')['addr:street'] == 'New Road'
    assert inherit_street_name(tags, None) is tags
    assert tags['addr:street'] == 'Old Road'
