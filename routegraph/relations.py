"""
Resolution of turn-restriction and associated-street relations.

Relations and their members may appear in either order in a source stream,
so resolution happens in two phases over one run-scoped `RelationContext`:

1. membership scan (`collect_relation_members`): only the identity of the
   members of relevant relations is recorded, never relation content;
2. attachment (`visit_relation` plus the lookups used while nodes and ways
   are classified): restriction records are materialised and street names
   are made available to the members of associated-street relations.
"""

from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional

from routegraph.constants import RESTRICTION_TYPES, ASSOCIATED_STREET_TYPES


class Restriction(NamedTuple):
    relation_id: int
    ref: Optional[str]
    from_way_id: Optional[int]
    to_way_id: Optional[int]
    tags: Dict[str, str]
    members: List[dict]


def is_restriction(tags):
    return tags.get('type') in RESTRICTION_TYPES


def is_associated_street(tags):
    return tags.get('type') in ASSOCIATED_STREET_TYPES


def _first_way_with_role(members, role):
    for m in members:
        if m.type == 'w' and m.role == role:
            return int(m.ref)
    return None


def make_restriction(relation):
    """
    Materialise a restriction relation.

    The ``from`` and ``to`` references are taken from the first way member
    with that role. Missing references stay None; they simply never match a
    transition.
    """
    members = [{'type': m.type, 'ref': int(m.ref), 'role': m.role} for m in relation.members]
    return Restriction(
        relation_id=int(relation.id),
        ref=relation.tags.get('ref'),
        from_way_id=_first_way_with_role(relation.members, 'from'),
        to_way_id=_first_way_with_role(relation.members, 'to'),
        tags=dict(relation.tags),
        members=members,
    )


class RelationContext:
    """
    Run-scoped relation state threaded through both visitor phases.

    Attributes
    ----------
    restriction_members : dict
        ``(member_type, member_id) -> set of relation ids`` for restrictions.
    street_members : dict
        ``(member_type, member_id) -> set of relation ids`` for
        associated-street relations.
    street_names : dict
        ``relation_id -> name`` for associated-street relations with a name.
    restrictions : dict
        ``relation_id -> Restriction``.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.restriction_members = defaultdict(set)
        self.street_members = defaultdict(set)
        self.street_names = {}
        self.restrictions = {}

    # -- phase 1 ---------------------------------------------------------

    def collect_relation_members(self, relation):
        """
        Record member identity of a relevant relation.

        Returns the member ids that must be seen (again) in phase 2 as
        ``{'nodes': [...], 'ways': [...]}``; both lists are empty for
        relations of any other type.
        """
        node_ids = []
        way_ids = []
        tags = relation.tags
        kinds = []
        if is_restriction(tags):
            kinds.append(self.restriction_members)
        if is_associated_street(tags):
            kinds.append(self.street_members)
        for membership in kinds:
            for m in relation.members:
                if m.type == 'n':
                    node_ids.append(int(m.ref))
                elif m.type == 'w':
                    way_ids.append(int(m.ref))
                else:
                    continue
                membership[(m.type, int(m.ref))].add(int(relation.id))
        return {'nodes': node_ids, 'ways': way_ids}

    # -- phase 2 ---------------------------------------------------------

    def visit_relation(self, relation):
        """Materialise a restriction or register an associated-street name."""
        tags = relation.tags
        result = None
        if is_restriction(tags):
            # Membership may not have been scanned yet for this relation.
            for m in relation.members:
                if m.type in ('n', 'w'):
                    self.restriction_members[(m.type, int(m.ref))].add(int(relation.id))
            result = make_restriction(relation)
            self.restrictions[result.relation_id] = result
        if is_associated_street(tags):
            for m in relation.members:
                if m.type in ('n', 'w'):
                    self.street_members[(m.type, int(m.ref))].add(int(relation.id))
            name = tags.get('name')
            if name:
                self.street_names[int(relation.id)] = name
        return result

    # -- lookups ---------------------------------------------------------

    def restriction_ids_for_way(self, way_id):
        return sorted(self.restriction_members.get(('w', int(way_id)), ()))

    def street_name_for(self, member_type, member_id):
        # Several associated-street relations: the highest relation id wins.
        rel_ids = self.street_members.get((member_type, int(member_id)))
        if not rel_ids:
            return None
        name = None
        for rel_id in sorted(rel_ids):
            name = self.street_names.get(rel_id, name)
        return name
