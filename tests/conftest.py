import pytest

from citynav.domain.types import RoadNode, QLearningConfig
from citynav.domain.poi import PointsOfInterest
from citynav.utils.city_factory import create_lattice, create_corridor


@pytest.fixture
def blocked_lattice():
    """3x3 lattice with the (1,0)-(1,1) link removed."""
    return create_lattice(3, 3, blocked_links=[(RoadNode(1, 0), RoadNode(1, 1))])


@pytest.fixture
def lattice_pois(blocked_lattice):
    blocked_lattice.add_road(RoadNode(9, 9))  # unreachable island
    pois = PointsOfInterest()
    pois.add("shop", RoadNode(2, 2))
    pois.add("home", RoadNode(0, 0))
    pois.add("park", None)
    pois.add("island", RoadNode(9, 9))
    return pois


@pytest.fixture
def corridor():
    return create_corridor(5)


@pytest.fixture
def corridor_pois():
    pois = PointsOfInterest()
    pois.add("end", RoadNode(4, 0))
    pois.add("start", RoadNode(0, 0))
    return pois


@pytest.fixture
def corridor_config():
    return QLearningConfig(
        learning_rate=0.4,
        discount_factor=0.9,
        epsilon=0.3,
        epsilon_min=0.02,
        epsilon_decay=0.947,
        max_episode_steps=50,
        reward_goal=5.0,
        reward_step=-0.1,
        seed=3,
    )
