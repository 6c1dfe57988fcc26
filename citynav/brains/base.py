"""Common interface every navigation brain implements."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from ..domain.types import RoadNode, ArrivalInfo, EpisodeRecord


class Brain(ABC):
    """
    Decision making strategy for an agent moving on the street grid.

    A driver calls choose_next_road, moves the agent to the returned node over
    as many ticks as it needs, then reports the hop with on_node_arrived
    exactly once before asking again.
    """

    @abstractmethod
    def set_goal(self, goal_id: Optional[str], start_node: Optional[RoadNode]) -> None:
        """Start heading for goal_id from start_node."""

    @abstractmethod
    def choose_next_road(self, current_node: RoadNode) -> Optional[RoadNode]:
        """Get the next street cell to step onto, None to stay put."""

    def on_node_arrived(self, prev_node: RoadNode, new_node: RoadNode,
                        info: Optional[ArrivalInfo] = None) -> Optional[EpisodeRecord]:
        """Feedback after a hop. Brains that do not learn ignore it."""
        return None

    @abstractmethod
    def get_debug_info(self) -> Dict[str, Any]:
        """Read-only snapshot for overlays and logs."""
