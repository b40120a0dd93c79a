"""
Tests for tag_filter - removal of mapper metadata and import artefacts.
"""

import pytest

from routegraph.tag_filter import clean_tags, make_clean_tags


def test_exact_and_prefix_keys_are_removed():
    tags = {'highway': 'residential', 'source': 'survey', 'tiger:cfcc': 'A41', 'note:en': 'x'}
    filtered, empty = clean_tags(tags)
    assert filtered == {'highway': 'residential'}
    assert not empty


def test_prefix_does_not_match_bare_key():
    # 'note:*' only removes namespaced keys; 'note' is listed separately.
    clean = make_clean_tags(['note:*'])
    filtered, _ = clean({'note': 'keep', 'note:de': 'drop'})
    assert filtered == {'note': 'keep'}


def test_everything_removed_is_empty():
    filtered, empty = clean_tags({'created_by': 'JOSM', 'fixme': 'check'})
    assert filtered == {}
    assert empty


@pytest.mark.parametrize("tags", [{}, None])
def test_no_tags_is_empty(tags):
    filtered, empty = clean_tags(tags)
    assert filtered == {}
    assert empty


def test_input_not_modified():
    tags = {'amenity': 'cafe', 'source': 'bing'}
    clean_tags(tags)
    assert tags == {'amenity': 'cafe', 'source': 'bing'}


def test_custom_key_set():
    filtered, _ = clean_tags({'amenity': 'cafe', 'source': 'bing'}, keys=['amenity'])
    assert filtered == {'source': 'bing'}
