"""Q-Learning brain for goal-directed navigation on the street grid."""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple
from ..domain.types import (
    RoadNode, ArrivalInfo, EpisodeRecord, PolicyEntry, QLearningConfig,
    Transition, TerminalReason
)
from ..domain.road_graph import RoadGraph
from ..domain.poi import PointsOfInterest
from ..domain.path_planner import PathPlanner
from ..domain.qtable import QTable
from ..errors import TransitionPendingError
from ..utils.rng import SeededRNG
from .base import Brain
from .rewards import DistanceShapedReward

logger = logging.getLogger(__name__)

# (min_x, max_x, min_z, max_z), all inclusive
Bounds = Tuple[int, int, int, int]


class QLearningBrain(Brain):
    """
    Tabular Q-Learning over (goal id, street cell) states.

    Actions are the neighboring street cells. The brain learns online, one hop
    at a time: choose_next_road records the chosen hop and on_node_arrived
    applies the one-step TD update once the driver confirms it. The Q table
    survives goal changes and episodes; only the per-episode counters reset.
    """

    def __init__(self, graph: RoadGraph, points_of_interest: PointsOfInterest,
                 config: Optional[QLearningConfig] = None, rng: Optional[SeededRNG] = None):
        self.graph = graph
        self.points_of_interest = points_of_interest
        self.config = config or QLearningConfig()
        self.rng = rng or SeededRNG(self.config.seed)
        self.planner = PathPlanner(graph)
        self.reward_policy = DistanceShapedReward(self.config)

        self.q_table = QTable()
        self.epsilon = self.config.epsilon

        self.current_goal_id: Optional[str] = None
        self.goal_node: Optional[RoadNode] = None
        self.bounds: Optional[Bounds] = None
        self._distance_cache: Dict[RoadNode, Dict[RoadNode, int]] = {}

        self.episode_count = 0
        self.total_steps = 0
        self.episode_steps = 0
        self.episode_reward = 0.0
        self._epsilon_used = self.epsilon
        self.episode_stats: Deque[EpisodeRecord] = deque(maxlen=self.config.max_episode_stats)

        self.pending: Optional[Transition] = None
        self.last_update: Optional[Dict[str, Any]] = None

    # Brain interface

    def set_goal(self, goal_id: Optional[str], start_node: Optional[RoadNode]) -> None:
        """Switch goal and begin a fresh episode, keeping everything learned."""
        self.current_goal_id = goal_id
        self.goal_node = self.points_of_interest.resolve(goal_id)
        if self.goal_node is None and goal_id:
            logger.warning("Point of interest %r not found or has no entrance road", goal_id)

        self.bounds = self._compute_bounds(start_node)
        self._start_episode()

    def choose_next_road(self, current_node: RoadNode) -> Optional[RoadNode]:
        """
        Pick the next street cell with an epsilon-greedy policy.

        Raises:
            TransitionPendingError: If the previous choice was never reported
                back through on_node_arrived
        """
        if self.pending is not None:
            raise TransitionPendingError(self.pending)
        if self.current_goal_id is None or self.goal_node is None:
            return None

        current_node = RoadNode(*current_node)
        actions = self.legal_actions(current_node)
        if not actions:
            return None

        goal_id = self.current_goal_id
        self.q_table.ensure_actions(goal_id, current_node, actions)

        if self.rng.random() < self.epsilon:
            choice = self.rng.choice(actions)
        else:
            choice = self.rng.choice(self.q_table.best_actions(goal_id, current_node, actions))

        self.pending = Transition(from_node=current_node, to_node=choice, goal_id=goal_id, action=choice)
        self.total_steps += 1
        return choice

    def on_node_arrived(self, prev_node: RoadNode, new_node: RoadNode,
                        info: Optional[ArrivalInfo] = None) -> Optional[EpisodeRecord]:
        """
        Apply the Q-Learning update for the hop that just completed.

        Returns the episode record when this hop ended the episode, else None.
        A hop that does not match the pending choice is dropped without an
        update.
        """
        info = info or ArrivalInfo()
        prev_node, new_node = RoadNode(*prev_node), RoadNode(*new_node)
        pending, self.pending = self.pending, None

        if pending is None:
            logger.warning("Arrival %s -> %s reported with no pending action, ignoring", prev_node, new_node)
            return None
        if pending.from_node != prev_node or pending.to_node != new_node:
            logger.warning("Arrival %s -> %s does not match chosen %s -> %s, dropping it",
                           prev_node, new_node, pending.from_node, pending.to_node)
            return None

        goal_id = pending.goal_id
        is_goal = info.is_goal or new_node == self.goal_node
        if info.reward is not None:
            reward = float(info.reward)
        else:
            reward = self.reward_policy(prev_node, new_node, is_goal, self._distances())

        old_q = self.q_table.get(goal_id, prev_node, pending.action)
        if is_goal:
            target = reward
        else:
            next_actions = self.legal_actions(new_node)
            self.q_table.ensure_actions(goal_id, new_node, next_actions)
            target = reward + self.config.discount_factor * self.q_table.max_value(goal_id, new_node, next_actions)

        updated_q = old_q + self.config.learning_rate * (target - old_q)
        self.q_table.set(goal_id, prev_node, pending.action, updated_q)

        self.last_update = {
            "prev_node": prev_node,
            "new_node": new_node,
            "goal_id": goal_id,
            "is_goal": is_goal,
            "reward": reward,
            "old_q": old_q,
            "updated_q": updated_q,
        }

        self.episode_steps += 1
        self.episode_reward += reward

        if is_goal:
            return self._end_episode("goal")
        if self.episode_steps >= self.config.max_episode_steps:
            return self._end_episode("timeout")
        return None

    def get_debug_info(self) -> Dict[str, Any]:
        return {
            "type": "q-learning",
            "goal_id": self.current_goal_id,
            "alpha": self.config.learning_rate,
            "gamma": self.config.discount_factor,
            "epsilon": self.epsilon,
            "epsilon_min": self.config.epsilon_min,
            "episodes": self.episode_count,
            "total_steps": self.total_steps,
            "episode_steps": self.episode_steps,
            "episode_reward": self.episode_reward,
            "pending": self.pending,
            "last_update": dict(self.last_update) if self.last_update else None,
            "episode_stats": list(self.episode_stats),
            "states": len(self.q_table),
        }

    # Policy inspection

    def legal_actions(self, node: RoadNode) -> List[RoadNode]:
        """Neighboring street cells, restricted to the exploration box if any."""
        return [neighbor for neighbor, _direction in self.graph.neighbors(node)
                if self._in_bounds(neighbor)]

    def greedy_next_road(self, node: RoadNode, goal_id: Optional[str] = None) -> Optional[RoadNode]:
        """
        Best known action without exploring or recording a transition.

        Ties go to the first action in neighbor order.
        """
        goal_id = goal_id or self.current_goal_id
        actions = self.legal_actions(RoadNode(*node))
        if goal_id is None or not actions:
            return None
        return self.q_table.best_actions(goal_id, RoadNode(*node), actions)[0]

    def get_policy_snapshot(self, goal_id: Optional[str] = None) -> List[PolicyEntry]:
        """Greedy action and its value for every visited state of a goal."""
        goal_id = goal_id or self.current_goal_id
        if goal_id is None:
            return []

        snapshot = []
        for _goal, node in self.q_table.states(goal_id):
            row = self.q_table.row(goal_id, node)
            if not row:
                continue
            best_action = max(row, key=row.get)
            snapshot.append(PolicyEntry(node=node, best_action=best_action, best_value=row[best_action]))
        return snapshot

    def get_q_snapshot(self, goal_id: Optional[str] = None) -> Dict[RoadNode, Dict[RoadNode, float]]:
        """Copy of the Q table rows of one goal, keyed by node."""
        goal_id = goal_id or self.current_goal_id
        if goal_id is None:
            return {}
        return {node: self.q_table.row(goal_id, node) for _goal, node in self.q_table.states(goal_id)}

    def decay_epsilon(self) -> None:
        """Decay epsilon for less exploration over time."""
        if self.epsilon > self.config.epsilon_min:
            self.epsilon = max(self.config.epsilon_min, self.epsilon * self.config.epsilon_decay)

    # Internals

    def _start_episode(self) -> None:
        self.episode_steps = 0
        self.episode_reward = 0.0
        self.pending = None
        self._epsilon_used = self.epsilon

    def _end_episode(self, reason: TerminalReason) -> EpisodeRecord:
        record = EpisodeRecord(
            episode=self.episode_count,
            steps=self.episode_steps,
            total_reward=self.episode_reward,
            goal_id=self.current_goal_id,
            reason=reason,
            epsilon_used=self._epsilon_used,
        )
        self.episode_stats.append(record)
        self.episode_count += 1
        self.decay_epsilon()
        logger.debug("Episode %d ended (%s) after %d steps, reward %.3f, epsilon now %.3f",
                     record.episode, reason, record.steps, record.total_reward, self.epsilon)
        self._start_episode()
        return record

    def _distances(self) -> Dict[RoadNode, int]:
        """Hop counts to the current goal node, computed once per goal node."""
        if self.goal_node is None:
            return {}
        if self.goal_node not in self._distance_cache:
            self._distance_cache[self.goal_node] = self.planner.distances_to(self.goal_node)
        return self._distance_cache[self.goal_node]

    def _compute_bounds(self, start_node: Optional[RoadNode]) -> Optional[Bounds]:
        margin = self.config.exploration_margin
        if margin is None or self.goal_node is None or start_node is None:
            return None
        xs = (start_node[0], self.goal_node.grid_x)
        zs = (start_node[1], self.goal_node.grid_z)
        return (min(xs) - margin, max(xs) + margin, min(zs) - margin, max(zs) + margin)

    def _in_bounds(self, node: RoadNode) -> bool:
        if self.bounds is None:
            return True
        min_x, max_x, min_z, max_z = self.bounds
        return min_x <= node.grid_x <= max_x and min_z <= node.grid_z <= max_z
