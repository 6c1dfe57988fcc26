"""Headless agent drivers that move along the street grid under a brain."""

import logging
from typing import Callable, Optional
from ..domain.types import RoadNode, ArrivalInfo, EpisodeRecord
from ..domain.road_graph import RoadGraph
from ..brains.base import Brain
from ..utils.city_factory import random_road
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)


class WalkerAgent:
    """
    Moves one street cell at a time, asking its brain where to go next.

    A hop is interpolated over several update ticks. The brain is asked for a
    new hop only when the previous one has been reported through
    on_node_arrived, so there is never more than one request in flight.
    """

    default_speed = 2.2  # world units per second

    def __init__(self, graph: RoadGraph, brain: Optional[Brain], start_road: RoadNode,
                 speed: Optional[float] = None, cell_size: float = 6.0,
                 on_episode_end: Optional[Callable[[EpisodeRecord], None]] = None):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.graph = graph
        self.brain = brain
        self.current_road_node = RoadNode(*start_road)
        self.previous_road_node: Optional[RoadNode] = None
        self.target_road_node: Optional[RoadNode] = None
        self.speed = speed if speed is not None else self.default_speed
        self.cell_size = cell_size
        self.on_episode_end = on_episode_end

        self.goal_id: Optional[str] = None
        self.progress = 0.0  # fraction of the current hop covered
        self.moving = False
        self.hops_completed = 0

    def set_goal(self, goal_id: Optional[str]) -> None:
        """Hand a new goal to the brain and stop any hop in progress."""
        self.goal_id = goal_id
        self.moving = False
        self.target_road_node = None
        self.progress = 0.0
        if self.brain is not None:
            self.brain.set_goal(goal_id, self.current_road_node)

    def is_at_road_node(self, node: Optional[RoadNode]) -> bool:
        return node is not None and self.current_road_node == RoadNode(*node)

    def update(self, dt: float) -> Optional[EpisodeRecord]:
        """
        Advance the simulation by dt seconds.

        Returns the episode record if arriving at a node ended a learning
        episode.
        """
        if not self.moving:
            self._start_next_segment()
        if not self.moving:
            return None

        self.progress += self.speed * dt / self.cell_size
        if self.progress < 1.0:
            return None

        prev_node = self.current_road_node
        self.current_road_node = self.target_road_node
        self.previous_road_node = prev_node
        self.target_road_node = None
        self.moving = False
        self.progress = 0.0
        self.hops_completed += 1

        record = None
        if self.brain is not None:
            record = self.brain.on_node_arrived(prev_node, self.current_road_node,
                                                ArrivalInfo(goal_id=self.goal_id))
        if record is not None and self.on_episode_end is not None:
            self.on_episode_end(record)
        return record

    def _start_next_segment(self) -> None:
        if self.brain is None:
            return

        next_node = self.brain.choose_next_road(self.current_road_node)
        if next_node is None:
            return

        next_node = RoadNode(*next_node)
        if not self.graph.is_linked(self.current_road_node, next_node):
            logger.warning("Next node %s is not a direct neighbor of %s", next_node, self.current_road_node)
            return

        self.target_road_node = next_node
        self.progress = 0.0
        self.moving = True


class CarAgent(WalkerAgent):
    """
    Same driver with car speed.

    Without a brain the car wanders: it starts on a random street cell when no
    start is given and at every node drives to a random neighbor, never back to
    the cell it just left unless that is the only way out.
    """

    default_speed = 7.0

    def __init__(self, graph: RoadGraph, brain: Optional[Brain] = None, start_road: Optional[RoadNode] = None,
                 speed: Optional[float] = None, cell_size: float = 6.0,
                 on_episode_end: Optional[Callable[[EpisodeRecord], None]] = None,
                 rng: Optional[SeededRNG] = None):
        self.rng = rng or SeededRNG()
        if start_road is None:
            start_road = random_road(graph, self.rng)
        super().__init__(graph, brain, start_road, speed=speed, cell_size=cell_size,
                         on_episode_end=on_episode_end)

    def _start_next_segment(self) -> None:
        if self.brain is not None:
            super()._start_next_segment()
            return

        candidates = [neighbor for neighbor, _direction in self.graph.neighbors(self.current_road_node)]
        if not candidates:
            return
        if len(candidates) > 1:
            candidates = [node for node in candidates if node != self.previous_road_node] or candidates

        self.target_road_node = self.rng.choice(candidates)
        self.progress = 0.0
        self.moving = True
