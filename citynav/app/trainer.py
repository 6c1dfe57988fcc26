"""Headless training loops for the Q-Learning brain."""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence
import numpy as np
from ..domain.types import RoadNode, EpisodeRecord, PathfindingResult
from ..brains.qlearning import QLearningBrain
from .walker import WalkerAgent

logger = logging.getLogger(__name__)


@dataclass
class TrainingSummary:
    """Result of a training run."""
    episodes: List[EpisodeRecord] = field(default_factory=list)
    final_epsilon: float = 0.0
    stopped_early: bool = False

    @property
    def total_episodes(self) -> int:
        return len(self.episodes)

    @property
    def successful_episodes(self) -> int:
        return sum(1 for ep in self.episodes if ep.reached_goal)

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0

    @property
    def average_reward(self) -> float:
        if not self.episodes:
            return 0.0
        return float(np.mean([ep.total_reward for ep in self.episodes]))

    @property
    def mean_steps(self) -> float:
        if not self.episodes:
            return 0.0
        return float(np.mean([ep.steps for ep in self.episodes]))


def run_episode(brain: QLearningBrain, goal_id: str, start: RoadNode) -> Optional[EpisodeRecord]:
    """
    Drive one episode hop by hop without any movement interpolation.

    Returns None if the brain stops answering before the episode ends (no
    legal move, or no reachable goal).
    """
    brain.set_goal(goal_id, start)
    node = RoadNode(*start)
    while True:
        next_node = brain.choose_next_road(node)
        if next_node is None:
            return None
        record = brain.on_node_arrived(node, next_node)
        node = next_node
        if record is not None:
            return record


def train_episodes(brain: QLearningBrain, goal_id: str, starts: Callable[[], RoadNode],
                   episodes: int) -> TrainingSummary:
    """
    Train for a number of episodes, each from a start drawn by starts().

    Args:
        brain: Brain to train
        goal_id: Goal pursued in every episode
        starts: Callable returning the start node of the next episode
        episodes: Number of episodes to run
    """
    summary = TrainingSummary()
    for _ in range(episodes):
        record = run_episode(brain, goal_id, starts())
        if record is None:
            logger.warning("Episode towards %r could not start, stopping training", goal_id)
            summary.stopped_early = True
            break
        summary.episodes.append(record)
    summary.final_epsilon = brain.epsilon
    return summary


def train_between(agent: WalkerAgent, goals: Sequence[str], episodes: int,
                  dt: float = 0.1, max_ticks: int = 1_000_000) -> TrainingSummary:
    """
    Send the agent back and forth between goals until enough episodes end.

    The goal only switches once the agent reaches it; a timed-out episode keeps
    pursuing the same goal from wherever the agent stands.
    """
    if not goals:
        raise ValueError("At least one goal is required")
    brain = agent.brain
    if not isinstance(brain, QLearningBrain):
        raise TypeError("train_between needs an agent driven by a QLearningBrain")

    summary = TrainingSummary()
    goal_index = 0
    agent.set_goal(goals[goal_index])

    ticks = 0
    while summary.total_episodes < episodes:
        if ticks >= max_ticks:
            logger.warning("Tick budget of %d exhausted after %d episodes", max_ticks, summary.total_episodes)
            summary.stopped_early = True
            break
        ticks += 1

        hops_before = agent.hops_completed
        record = agent.update(dt)
        if record is None:
            if not agent.moving and agent.hops_completed == hops_before:
                logger.warning("Agent at %s has no move towards %r, stopping training",
                               agent.current_road_node, agent.goal_id)
                summary.stopped_early = True
                break
            continue

        summary.episodes.append(record)
        if record.reached_goal:
            goal_index = (goal_index + 1) % len(goals)
            agent.set_goal(goals[goal_index])

    summary.final_epsilon = brain.epsilon
    return summary


def greedy_route(brain: QLearningBrain, goal_id: str, start: RoadNode,
                 max_steps: Optional[int] = None) -> PathfindingResult:
    """Follow the learned policy without exploration and report the route."""
    max_steps = max_steps or brain.config.max_episode_steps
    goal_node = brain.points_of_interest.resolve(goal_id)
    node = RoadNode(*start)
    path = [node]

    for _ in range(max_steps):
        if node == goal_node:
            break
        next_node = brain.greedy_next_road(node, goal_id)
        if next_node is None:
            break
        path.append(next_node)
        node = next_node

    # Following a policy explores nothing
    return PathfindingResult(path=path, nodes_explored=0, found=node == goal_node)
