"""Breadth-first shortest path search over the street graph."""

import logging
from collections import deque
from typing import Dict, List, Optional
from .types import RoadNode, PathfindingResult
from .road_graph import RoadGraph

logger = logging.getLogger(__name__)


class PathPlanner:
    """
    Unweighted shortest path planner.

    Every hop costs the same, so a FIFO breadth-first search is enough. Among
    several shortest paths the one returned depends only on the order in which
    RoadGraph.neighbors enumerates cells; callers must not rely on which one.
    """

    def __init__(self, graph: RoadGraph):
        self.graph = graph

    def find_path(self, start: Optional[RoadNode], goal: Optional[RoadNode]) -> PathfindingResult:
        """
        Find a shortest path from start to goal, both endpoints included.

        Returns a result with found=False when either endpoint is not a street
        cell or when goal cannot be reached. A start equal to goal yields a
        single-node path.
        """
        if start is None or not self.graph.has_road(start):
            return PathfindingResult(found=False)
        if goal is None or not self.graph.has_road(goal):
            return PathfindingResult(found=False)

        queue = deque([start])
        visited = {start}
        parent: Dict[RoadNode, RoadNode] = {}
        nodes_explored = 0

        while queue:
            current = queue.popleft()
            nodes_explored += 1

            if current == goal:
                return PathfindingResult(
                    path=self._reconstruct_path(goal, parent),
                    nodes_explored=nodes_explored,
                    found=True,
                )

            for neighbor, _direction in self.graph.neighbors(current):
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                parent[neighbor] = current
                queue.append(neighbor)

        logger.debug("No path from %s to %s after exploring %d nodes", start, goal, nodes_explored)
        return PathfindingResult(found=False, nodes_explored=nodes_explored)

    def distances_to(self, goal: Optional[RoadNode]) -> Dict[RoadNode, int]:
        """
        Hop count to goal from every street cell that can reach it.

        Links are symmetric, so a single search outward from goal covers every
        start. Cells missing from the result cannot reach goal.
        """
        if goal is None or not self.graph.has_road(goal):
            return {}

        distances = {goal: 0}
        queue = deque([goal])
        while queue:
            current = queue.popleft()
            for neighbor, _direction in self.graph.neighbors(current):
                if neighbor in distances:
                    continue
                distances[neighbor] = distances[current] + 1
                queue.append(neighbor)
        return distances

    @staticmethod
    def _reconstruct_path(goal: RoadNode, parent: Dict[RoadNode, RoadNode]) -> List[RoadNode]:
        """Walk parent pointers back from goal and return the path start-first."""
        path = [goal]
        current = goal
        while current in parent:
            current = parent[current]
            path.append(current)
        path.reverse()
        return path


def find_path(graph: RoadGraph, start: Optional[RoadNode], goal: Optional[RoadNode]) -> PathfindingResult:
    """
    Convenience function to run a breadth-first search from start to goal.

    Args:
        graph: Street graph to search in
        start: Starting street cell
        goal: Target street cell

    Returns:
        PathfindingResult with path and statistics
    """
    return PathPlanner(graph).find_path(start, goal)


def validate_path(path: List[RoadNode], graph: RoadGraph) -> bool:
    """
    Validate that a path only uses street cells and legal links.
    Returns True if path is valid.
    """
    if not path:
        return False
    if not all(graph.has_road(node) for node in path):
        return False
    return all(graph.is_linked(a, b) for a, b in zip(path, path[1:]))
