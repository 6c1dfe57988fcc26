"""Finite State Machine for the shortest-path brain planning phases."""

from enum import Enum
from typing import Callable, Dict, Optional, Set, Tuple


class PlannerState(Enum):
    """States of a shortest-path brain."""
    NO_GOAL = "no_goal"
    PLANNING = "planning"
    FOLLOWING = "following"


class PlannerStateMachine:
    """
    Finite State Machine for managing route planning.

    State Transitions:
    NO_GOAL -> PLANNING (goal set, or replan requested)
    PLANNING -> FOLLOWING (path found)
    PLANNING -> NO_GOAL (goal unknown or unreachable)
    PLANNING -> PLANNING (goal replaced before a route was computed)
    FOLLOWING -> PLANNING (goal changed, or agent drifted off the path)
    FOLLOWING -> NO_GOAL (goal cleared)
    """

    def __init__(self):
        self._current_state = PlannerState.NO_GOAL
        self._state_callbacks: Dict[PlannerState, Callable[[Optional[dict]], None]] = {}
        self._transition_callbacks: Dict[Tuple[PlannerState, PlannerState],
                                         Callable[[PlannerState, PlannerState, Optional[dict]], None]] = {}
        self._valid_transitions = self._build_transition_map()

    def _build_transition_map(self) -> Dict[PlannerState, Set[PlannerState]]:
        """Build the valid state transition map."""
        return {
            PlannerState.NO_GOAL: {PlannerState.PLANNING},
            PlannerState.PLANNING: {PlannerState.FOLLOWING, PlannerState.NO_GOAL, PlannerState.PLANNING},
            PlannerState.FOLLOWING: {PlannerState.PLANNING, PlannerState.NO_GOAL},
        }

    @property
    def current_state(self) -> PlannerState:
        """Get the current state."""
        return self._current_state

    def can_transition_to(self, target_state: PlannerState) -> bool:
        """Check if transition to target state is valid."""
        return target_state in self._valid_transitions.get(self._current_state, set())

    def transition_to(self, target_state: PlannerState, context: Optional[dict] = None) -> bool:
        """
        Attempt to transition to the target state.

        Args:
            target_state: The state to transition to
            context: Optional context data for the transition

        Returns:
            True if transition was successful, False otherwise
        """
        if not self.can_transition_to(target_state):
            return False

        old_state = self._current_state
        self._current_state = target_state

        transition_key = (old_state, target_state)
        if transition_key in self._transition_callbacks:
            self._transition_callbacks[transition_key](old_state, target_state, context)

        if target_state in self._state_callbacks:
            self._state_callbacks[target_state](context)

        return True

    def on_state_enter(self, state: PlannerState, callback: Callable[[Optional[dict]], None]):
        """Register a callback for when entering a specific state."""
        self._state_callbacks[state] = callback

    def on_transition(self, from_state: PlannerState, to_state: PlannerState,
                      callback: Callable[[PlannerState, PlannerState, Optional[dict]], None]):
        """Register a callback for a specific state transition."""
        self._transition_callbacks[(from_state, to_state)] = callback

    # Convenience methods for common operations

    def plan(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(PlannerState.PLANNING, context)

    def follow(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(PlannerState.FOLLOWING, context)

    def clear(self, context: Optional[dict] = None) -> bool:
        return self.transition_to(PlannerState.NO_GOAL, context)

    def is_following(self) -> bool:
        return self._current_state == PlannerState.FOLLOWING

    def has_goal(self) -> bool:
        return self._current_state != PlannerState.NO_GOAL

    def get_state_description(self) -> str:
        """Get a human-readable description of the current state."""
        descriptions = {
            PlannerState.NO_GOAL: "No reachable goal",
            PlannerState.PLANNING: "Planning route",
            PlannerState.FOLLOWING: "Following route",
        }
        return descriptions.get(self._current_state, "Unknown state")
