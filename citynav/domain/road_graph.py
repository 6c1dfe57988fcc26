"""Street topology and cardinal-neighbor generation."""

from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set
from .types import RoadNode, RoadInfo, Neighbor, DIRECTION_DELTAS


class RoadGraph:
    """
    The set of street cells plus their adjacency.

    A cell is traversable iff it was registered with add_road. Two registered
    cells one cardinal step apart are connected unless the link between them
    was blocked. The graph is populated once by a city factory and treated as
    read-only afterwards; planners and brains only ever query it.
    """

    def __init__(self, roads: Optional[Iterable[RoadNode]] = None):
        self._roads: Dict[RoadNode, RoadInfo] = {}
        self._blocked: Set[FrozenSet[RoadNode]] = set()
        for node in roads or ():
            self.add_road(node)

    def add_road(self, node: RoadNode, is_intersection: bool = False) -> None:
        """Register a street cell."""
        self._roads[RoadNode(*node)] = RoadInfo(is_intersection=is_intersection)

    def block_link(self, a: RoadNode, b: RoadNode) -> None:
        """Disconnect two adjacent street cells without removing either."""
        a, b = RoadNode(*a), RoadNode(*b)
        if not a.is_adjacent(b):
            raise ValueError(f"{a} and {b} are not adjacent")
        self._blocked.add(frozenset((a, b)))

    def has_road(self, node: RoadNode) -> bool:
        """Check if node is a registered street cell."""
        return node in self._roads

    def get_road(self, node: RoadNode) -> Optional[RoadInfo]:
        """Get the metadata for node, None if it is not a street cell."""
        return self._roads.get(node)

    def is_intersection(self, node: RoadNode) -> bool:
        info = self.get_road(node)
        return bool(info and info.is_intersection)

    def is_linked(self, a: RoadNode, b: RoadNode) -> bool:
        """Whether a single step from a to b is legal."""
        return (self.has_road(a) and self.has_road(b) and a.is_adjacent(b)
                and frozenset((a, b)) not in self._blocked)

    def neighbors(self, node: RoadNode) -> List[Neighbor]:
        """
        Get the street cells reachable from node in one step.

        Candidates are enumerated east, west, south, north and filtered to
        registered, unblocked cells, so the order is reproducible for a given
        graph. An empty list is a valid answer for an isolated cell.
        """
        x, z = node
        neighbors = []
        for direction, (dx, dz) in DIRECTION_DELTAS.items():
            candidate = RoadNode(x + dx, z + dz)
            if not self.has_road(candidate):
                continue
            if frozenset((node, candidate)) in self._blocked:
                continue
            neighbors.append(Neighbor(candidate, direction))
        return neighbors

    def nodes(self) -> List[RoadNode]:
        """All street cells in registration order."""
        return list(self._roads)

    def __contains__(self, node) -> bool:
        return node in self._roads

    def __iter__(self) -> Iterator[RoadNode]:
        return iter(self._roads)

    def __len__(self) -> int:
        return len(self._roads)
