import pytest

from citynav.domain.types import RoadNode
from citynav.domain.road_graph import RoadGraph
from citynav.utils.city_factory import create_lattice


def test_neighbors_follow_fixed_direction_order():
    graph = create_lattice(3, 3)
    neighbors = graph.neighbors(RoadNode(1, 1))
    assert [n.node for n in neighbors] == [(2, 1), (0, 1), (1, 2), (1, 0)]
    assert [n.direction for n in neighbors] == ["east", "west", "south", "north"]


def test_neighbors_only_include_roads():
    graph = create_lattice(3, 3)
    assert [n.node for n in graph.neighbors(RoadNode(0, 0))] == [(1, 0), (0, 1)]


def test_blocked_link_is_excluded_both_ways(blocked_lattice):
    assert RoadNode(1, 1) not in [n.node for n in blocked_lattice.neighbors(RoadNode(1, 0))]
    assert RoadNode(1, 0) not in [n.node for n in blocked_lattice.neighbors(RoadNode(1, 1))]
    assert blocked_lattice.has_road(RoadNode(1, 0))
    assert blocked_lattice.has_road(RoadNode(1, 1))
    assert not blocked_lattice.is_linked(RoadNode(1, 0), RoadNode(1, 1))
    assert blocked_lattice.is_linked(RoadNode(0, 0), RoadNode(1, 0))


def test_isolated_road_has_no_neighbors():
    graph = RoadGraph([RoadNode(4, 4)])
    assert graph.has_road(RoadNode(4, 4))
    assert graph.neighbors(RoadNode(4, 4)) == []


def test_has_road_is_false_for_unregistered_cells():
    graph = create_lattice(2, 2)
    assert not graph.has_road(RoadNode(5, 5))
    assert RoadNode(5, 5) not in graph
    assert len(graph) == 4


def test_block_link_rejects_non_adjacent_cells():
    graph = create_lattice(3, 3)
    with pytest.raises(ValueError):
        graph.block_link(RoadNode(0, 0), RoadNode(2, 2))


def test_intersection_metadata():
    graph = RoadGraph()
    graph.add_road(RoadNode(0, 0), is_intersection=True)
    graph.add_road(RoadNode(1, 0))
    assert graph.is_intersection(RoadNode(0, 0))
    assert not graph.is_intersection(RoadNode(1, 0))
    assert not graph.is_intersection(RoadNode(7, 7))
    assert graph.get_road(RoadNode(7, 7)) is None


def test_road_nodes_compare_structurally():
    assert RoadNode(1, 2) == RoadNode(1, 2)
    assert hash(RoadNode(1, 2)) == hash(RoadNode(1, 2))
    assert RoadNode(1, 2) != RoadNode(2, 1)
    assert RoadNode(0, 0).is_adjacent(RoadNode(0, 1))
    assert not RoadNode(0, 0).is_adjacent(RoadNode(1, 1))
