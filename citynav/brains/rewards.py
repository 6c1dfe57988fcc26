"""Reward policy for goal-directed street navigation."""

from typing import Mapping
from ..domain.types import RoadNode, QLearningConfig


class DistanceShapedReward:
    """
    Step cost plus a bonus for every hop of graph distance gained.

    Reaching the goal pays reward_goal and nothing else. Any other hop pays
    reward_step + distance_reward_scale * (d(prev) - d(new)), where d is the
    hop count to the goal. The shaping term is skipped when either node cannot
    reach the goal.
    """

    def __init__(self, config: QLearningConfig):
        self.reward_goal = config.reward_goal
        self.reward_step = config.reward_step
        self.scale = config.distance_reward_scale

    def __call__(self, prev_node: RoadNode, new_node: RoadNode, is_goal: bool,
                 distances: Mapping[RoadNode, int]) -> float:
        if is_goal:
            return self.reward_goal

        reward = self.reward_step
        prev_dist = distances.get(prev_node)
        new_dist = distances.get(new_node)
        if prev_dist is not None and new_dist is not None:
            reward += self.scale * (prev_dist - new_dist)
        return reward
