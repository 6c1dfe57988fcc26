"""Core type definitions for street-grid navigation."""

from dataclasses import dataclass
from typing import NamedTuple, Optional, Literal, Dict

# Cardinal directions a step can take along the street grid
Direction = Literal["east", "west", "south", "north"]

# Why an episode ended
TerminalReason = Literal["goal", "timeout"]


class RoadNode(NamedTuple):
    """A street cell identified by its grid coordinates."""
    grid_x: int
    grid_z: int

    def manhattan_to(self, other: "RoadNode") -> int:
        """Grid distance ignoring the street layout."""
        return abs(self.grid_x - other.grid_x) + abs(self.grid_z - other.grid_z)

    def is_adjacent(self, other: "RoadNode") -> bool:
        """Whether other is exactly one cardinal step away."""
        return self.manhattan_to(other) == 1


class Neighbor(NamedTuple):
    """A reachable adjacent street cell with the direction used to reach it."""
    node: RoadNode
    direction: Direction


@dataclass(frozen=True)
class RoadInfo:
    """Metadata kept for every street cell."""
    is_intersection: bool = False


@dataclass
class PathfindingResult:
    """Result of a pathfinding operation."""
    path: Optional[list[RoadNode]] = None
    nodes_explored: int = 0
    found: bool = False

    @property
    def success(self) -> bool:
        """Whether pathfinding was successful."""
        return self.found and self.path is not None and len(self.path) > 0

    @property
    def length(self) -> int:
        """Number of hops along the path (0 when not found)."""
        return len(self.path) - 1 if self.success else 0


@dataclass(frozen=True)
class Transition:
    """An action chosen by a learning brain and not yet confirmed by arrival."""
    from_node: RoadNode
    to_node: RoadNode
    goal_id: str
    action: RoadNode


@dataclass(frozen=True)
class ArrivalInfo:
    """What the driver knows when an agent reaches a node."""
    goal_id: Optional[str] = None
    is_goal: bool = False
    reward: Optional[float] = None


@dataclass(frozen=True)
class EpisodeRecord:
    """Summary of a finished learning episode."""
    episode: int
    steps: int
    total_reward: float
    goal_id: str
    reason: TerminalReason
    epsilon_used: float = 0.0

    @property
    def reached_goal(self) -> bool:
        """Whether the episode ended at the goal."""
        return self.reason == "goal"


@dataclass
class QLearningConfig:
    """Configuration for the Q-Learning brain."""
    learning_rate: float = 0.6  # alpha
    discount_factor: float = 0.9  # gamma
    epsilon: float = 0.4  # initial exploration probability
    epsilon_min: float = 0.05
    epsilon_decay: float = 0.985  # multiplicative, applied once per episode
    max_episode_steps: int = 70  # episode times out after this many hops
    max_episode_stats: int = 80  # episode records kept for reporting

    # Reward shaping
    reward_goal: float = 1.0
    reward_step: float = -0.05
    distance_reward_scale: float = 0.05  # per hop of graph distance gained

    # Only consider neighbors inside the box spanned by start and goal, grown
    # by this many cells. None explores the whole graph.
    exploration_margin: Optional[int] = None

    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 < self.learning_rate <= 1.0:
            raise ValueError(f"learning_rate must be in (0, 1], got {self.learning_rate}")
        if not 0.0 <= self.discount_factor <= 1.0:
            raise ValueError(f"discount_factor must be in [0, 1], got {self.discount_factor}")
        if not 0.0 <= self.epsilon_min <= 1.0 or not 0.0 <= self.epsilon <= 1.0:
            raise ValueError(f"epsilon values must be in [0, 1], got {self.epsilon} and {self.epsilon_min}")
        if self.epsilon < self.epsilon_min:
            raise ValueError(f"epsilon ({self.epsilon}) must not be below epsilon_min ({self.epsilon_min})")
        if not 0.0 < self.epsilon_decay <= 1.0:
            raise ValueError(f"epsilon_decay must be in (0, 1], got {self.epsilon_decay}")
        if self.max_episode_steps <= 0 or self.max_episode_stats <= 0:
            raise ValueError("max_episode_steps and max_episode_stats must be positive")
        if self.exploration_margin is not None and self.exploration_margin < 0:
            raise ValueError(f"exploration_margin must be >= 0, got {self.exploration_margin}")


@dataclass(frozen=True)
class PolicyEntry:
    """Greedy action for one visited state."""
    node: RoadNode
    best_action: RoadNode
    best_value: float


# Direction deltas in the fixed enumeration order used by the road graph
DIRECTION_DELTAS: Dict[Direction, tuple[int, int]] = {
    "east": (1, 0),
    "west": (-1, 0),
    "south": (0, 1),
    "north": (0, -1),
}
