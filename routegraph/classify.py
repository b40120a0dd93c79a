"""
Entity classification into roads and points of interest.

Classification is driven by an ordered rule table of (category, predicate)
pairs evaluated once per entity; the first matching rule decides.
"""

from routegraph.constants import (
    ROADWAY_KEYS, POI_KEYS, STREET_NAME_KEY, HOUSENUMBER_KEY
)
from routegraph.entities import Node, Way

# =============================================================================
# SHAPE
# =============================================================================

def dedupe_consecutive(coords):
    # Drop repeated consecutive vertices so zero-length segments never appear.
    result = []
    last = None
    for c in coords:
        c = (float(c[0]), float(c[1]))
        if c != last:
            result.append(c)
            last = c
    return result


def entity_shape(entity):
    """
    Return the shape of an entity: 'point', 'line', 'area', or None.

    An open way needs at least two distinct vertices and distinct end
    positions to be a 'line'; a closed way needs at least four coordinates
    (three distinct) to be an 'area'. Anything else is degenerate and
    returns None.
    """
    if isinstance(entity, Node):
        return 'point'
    if isinstance(entity, Way):
        coords = dedupe_consecutive(entity.coords)
        if entity.is_closed:
            if len(coords) >= 4 and len(set(coords)) >= 3:
                return 'area'
            return None
        # Distinct end nodes at the same position still form a ring.
        if len(coords) >= 2 and coords[0] != coords[-1]:
            return 'line'
        return None
    return None

# =============================================================================
# TAG PREDICATES
# =============================================================================

def is_roadway(tags):
    return any(tags.get(k) for k in ROADWAY_KEYS)


def has_address(tags):
    return bool(tags.get(STREET_NAME_KEY) and tags.get(HOUSENUMBER_KEY))


def is_poi(tags):
    return has_address(tags) or any(tags.get(k) for k in POI_KEYS)


def _road_rule(shape, tags):
    return shape == 'line' and is_roadway(tags)


def _poi_rule(shape, tags):
    return shape in ('point', 'area') and is_poi(tags)


CLASSIFIER_RULES = (
    ('road', _road_rule),
    ('poi', _poi_rule),
)

# =============================================================================
# CLASSIFICATION
# =============================================================================

def inherit_street_name(tags, street_name):
    # Associated-street membership overrides whatever street the entity carries.
    if not street_name:
        return tags
    result = dict(tags)
    result[STREET_NAME_KEY] = street_name
    return result


def classify(entity, tags=None, rules=CLASSIFIER_RULES):
    """
    Classify an entity with the rule table.

    Parameters
    ----------
    entity : Node or Way
        The raw entity; its geometry determines the shape.
    tags : dict, optional
        Tags to evaluate instead of ``entity.tags`` (typically the output of
        the tag filter, with any inherited street name applied). A street
        name inherited from an associated-street relation is part of the
        evaluated tags, so it can complete an address pair and make an
        entity carrying only ``addr:housenumber`` a POI.
    rules : sequence of (str, callable)
        Ordered ``(category, predicate(shape, tags))`` pairs.

    Returns
    -------
    str or None
        The category of the first matching rule, or None when the entity is
        discarded.
    """
    if tags is None:
        tags = entity.tags
    if not tags:
        return None
    shape = entity_shape(entity)
    if shape is None:
        return None
    for category, predicate in rules:
        if predicate(shape, tags):
            return category
    return None
