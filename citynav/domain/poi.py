"""Points of interest: named destinations with an entrance on the street grid."""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional
from .types import RoadNode


@dataclass(frozen=True)
class PointOfInterest:
    """A named destination such as "home" or "shop"."""
    goal_id: str
    entrance_road: Optional[RoadNode] = None


class PointsOfInterest:
    """Resolves goal ids to the street cell an agent must reach."""

    def __init__(self):
        self._pois: Dict[str, PointOfInterest] = {}

    def add(self, goal_id: str, entrance_road: Optional[RoadNode]) -> PointOfInterest:
        poi = PointOfInterest(
            goal_id=goal_id,
            entrance_road=RoadNode(*entrance_road) if entrance_road is not None else None,
        )
        self._pois[goal_id] = poi
        return poi

    def get(self, goal_id: str) -> Optional[PointOfInterest]:
        return self._pois.get(goal_id)

    def resolve(self, goal_id: Optional[str]) -> Optional[RoadNode]:
        """
        Get the entrance road for a goal.

        Returns None for an unknown goal id or a point of interest that has no
        entrance road.
        """
        if not goal_id:
            return None
        poi = self.get(goal_id)
        if poi is None:
            return None
        return poi.entrance_road

    def __contains__(self, goal_id) -> bool:
        return goal_id in self._pois

    def __iter__(self) -> Iterator[str]:
        return iter(self._pois)

    def __len__(self) -> int:
        return len(self._pois)
