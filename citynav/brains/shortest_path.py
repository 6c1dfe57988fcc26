"""Deterministic brain that follows breadth-first shortest paths."""

import logging
from typing import Any, Dict, List, Optional
from ..domain.types import RoadNode
from ..domain.road_graph import RoadGraph
from ..domain.poi import PointsOfInterest
from ..domain.path_planner import PathPlanner
from .base import Brain
from .fsm import PlannerStateMachine, PlannerState

logger = logging.getLogger(__name__)


class ShortestPathBrain(Brain):
    """
    Plans the shortest street route to the goal and hands it out hop by hop.

    It does not learn. The route is recomputed when the goal changes and when
    the agent turns up somewhere other than where the route says it should be.
    A goal that cannot be resolved or reached from the set_goal start leaves the
    brain in NO_GOAL, where it answers None until set_goal is called again. A
    failed replan after drift keeps the goal in PLANNING, so the next request
    tries again from wherever the agent is then.
    """

    def __init__(self, graph: RoadGraph, points_of_interest: PointsOfInterest,
                 default_goal_id: Optional[str] = None):
        self.graph = graph
        self.points_of_interest = points_of_interest
        self.planner = PathPlanner(graph)
        self.fsm = PlannerStateMachine()

        self.current_goal_id: Optional[str] = None
        self.goal_node: Optional[RoadNode] = None
        self.current_path: Optional[List[RoadNode]] = None
        self.path_index = 0  # index of the next node to hand out
        self.last_start: Optional[RoadNode] = None
        self.replan_count = 0

        if default_goal_id:
            self.set_goal(default_goal_id, None)

    @property
    def state(self) -> PlannerState:
        return self.fsm.current_state

    def set_goal(self, goal_id: Optional[str], start_node: Optional[RoadNode]) -> None:
        """
        Set the current goal and plan a route to it from start_node.

        Without a start node the goal is kept and planning is deferred to the
        first choose_next_road call.
        """
        self.current_goal_id = goal_id
        self.goal_node = None
        self._clear_path()

        self.fsm.plan({"goal_id": goal_id})

        self.goal_node = self.points_of_interest.resolve(goal_id)
        if self.goal_node is None:
            if goal_id:
                logger.warning("Point of interest %r not found or has no entrance road", goal_id)
            self.fsm.clear({"goal_id": goal_id})
            return

        if start_node is None:
            return

        self._plan_from(RoadNode(*start_node))

    def choose_next_road(self, current_node: RoadNode) -> Optional[RoadNode]:
        """
        Get the next street cell along the planned route.

        Returns None when there is no reachable goal or the agent has arrived.
        """
        if self.state == PlannerState.NO_GOAL:
            return None

        current_node = RoadNode(*current_node)
        if self.current_path is None or self._expected_current() != current_node:
            if self.current_path is not None:
                logger.debug("Agent at %s drifted from planned %s, replanning",
                             current_node, self._expected_current())
            self._plan_from(current_node, give_up=False)
            if self.current_path is None:
                return None

        if self.path_index >= len(self.current_path):
            return None

        next_node = self.current_path[self.path_index]
        self.path_index += 1
        return next_node

    def get_debug_info(self) -> Dict[str, Any]:
        """Info for overlays showing the planned route."""
        path = list(self.current_path) if self.current_path else []
        return {
            "type": "shortest-path",
            "goal_id": self.current_goal_id,
            "goal_node": self.goal_node,
            "state": self.state.value,
            "path": path,
            "path_length": len(path),
            "path_index": self.path_index,
            "remaining_steps": max(0, len(path) - self.path_index),
            "last_start": self.last_start,
            "replans": self.replan_count,
        }

    def _expected_current(self) -> Optional[RoadNode]:
        """Where the route says the agent is standing now."""
        if not self.current_path:
            return None
        return self.current_path[max(self.path_index - 1, 0)]

    def _plan_from(self, start_node: RoadNode, give_up: bool = True) -> None:
        """
        Recompute the route from start_node and enter FOLLOWING.

        When no route exists the brain enters NO_GOAL if give_up is set, else it
        stays in PLANNING with no route so the next request replans.
        """
        if self.fsm.is_following():
            self.fsm.plan({"start": start_node})
            self.replan_count += 1

        result = self.planner.find_path(start_node, self.goal_node)
        if not result.success:
            logger.warning("No path found from %s to %s", start_node, self.goal_node)
            self._clear_path()
            if give_up:
                self.fsm.clear({"start": start_node})
            return

        self.current_path = result.path
        self.path_index = 1  # index 0 is the node the agent stands on
        self.last_start = start_node
        self.fsm.follow({"path": result.path})

    def _clear_path(self) -> None:
        self.current_path = None
        self.path_index = 0
        self.last_start = None
