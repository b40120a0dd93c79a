"""
Raw map entities as handed to the compiler by a source reader.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple


class Node(NamedTuple):
    id: int
    lon: float
    lat: float
    tags: Dict[str, str]


class Way(NamedTuple):
    """
    An ordered vertex list.

    `node_ids` may be empty when the source only provides coordinates; the
    closed test then falls back to comparing the first and last coordinate.
    """
    id: int
    coords: List[Tuple[float, float]]
    tags: Dict[str, str]
    node_ids: Optional[List[int]] = None

    @property
    def is_closed(self):
        if self.node_ids and len(self.node_ids) > 1:
            return self.node_ids[0] == self.node_ids[-1]
        return len(self.coords) > 1 and tuple(self.coords[0]) == tuple(self.coords[-1])


class Member(NamedTuple):
    type: str  # 'n', 'w' or 'r'
    ref: int
    role: str = ''


class Relation(NamedTuple):
    id: int
    tags: Dict[str, str]
    members: List[Member]
