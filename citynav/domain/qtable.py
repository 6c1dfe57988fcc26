"""Tabular state-action value storage for goal-directed navigation."""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import numpy as np
from .types import RoadNode

# A state pairs the goal being pursued with the street cell the agent is on
StateKey = Tuple[str, RoadNode]


class QTable:
    """
    Q-values keyed by (goal id, node) and then by the neighbor stepped onto.

    Entries are created on first touch and never removed. Reading a state or
    action that was never written yields exactly 0.0.
    """

    def __init__(self):
        self._rows: Dict[StateKey, Dict[RoadNode, float]] = {}

    def get(self, goal_id: str, node: RoadNode, action: RoadNode) -> float:
        """Get Q-value for state-action pair."""
        row = self._rows.get((goal_id, node))
        if row is None:
            return 0.0
        return row.get(action, 0.0)

    def set(self, goal_id: str, node: RoadNode, action: RoadNode, value: float) -> None:
        """Set Q-value for state-action pair."""
        self._rows.setdefault((goal_id, node), {})[action] = float(value)

    def ensure_actions(self, goal_id: str, node: RoadNode, actions: Sequence[RoadNode]) -> Dict[RoadNode, float]:
        """Make sure every action of a state has an entry (0.0 when new)."""
        row = self._rows.setdefault((goal_id, node), {})
        for action in actions:
            row.setdefault(action, 0.0)
        return row

    def values(self, goal_id: str, node: RoadNode, actions: Sequence[RoadNode]) -> np.ndarray:
        """Q-values for the given actions as a numpy array, in the same order."""
        row = self._rows.get((goal_id, node), {})
        return np.array([row.get(action, 0.0) for action in actions], dtype=float)

    def max_value(self, goal_id: str, node: RoadNode, actions: Sequence[RoadNode]) -> float:
        """Get the maximum Q-value over actions, 0.0 when there are none."""
        if not actions:
            return 0.0
        return float(np.max(self.values(goal_id, node, actions)))

    def best_actions(self, goal_id: str, node: RoadNode, actions: Sequence[RoadNode]) -> List[RoadNode]:
        """All actions sharing the highest Q-value, in the order given."""
        if not actions:
            return []
        values = self.values(goal_id, node, actions)
        best = np.flatnonzero(values == values.max())
        return [actions[i] for i in best]

    def row(self, goal_id: str, node: RoadNode) -> Optional[Dict[RoadNode, float]]:
        """Copy of the stored actions for a state, None if never touched."""
        row = self._rows.get((goal_id, node))
        return dict(row) if row is not None else None

    def states(self, goal_id: Optional[str] = None) -> Iterator[StateKey]:
        """Iterate stored states, optionally only those of one goal."""
        for key in list(self._rows):
            if goal_id is None or key[0] == goal_id:
                yield key

    def __contains__(self, key) -> bool:
        return key in self._rows

    def __len__(self) -> int:
        return len(self._rows)
