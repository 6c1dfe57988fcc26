"""City factory for building street graphs and points of interest."""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple
from ..domain.types import RoadNode
from ..domain.road_graph import RoadGraph
from ..domain.poi import PointsOfInterest
from .rng import SeededRNG


@dataclass
class CityLayout:
    """Parameters of the procedural street grid."""
    grid_size: int = 15  # 15x15 cells
    road_step: int = 3  # a street every 3 cells
    cell_size: float = 6.0  # world units per cell, used by the agent drivers
    home_entrance: Optional[RoadNode] = RoadNode(9, 7)
    shop_entrance: Optional[RoadNode] = RoadNode(3, 10)


@dataclass
class City:
    """Street graph plus the named destinations placed on it."""
    graph: RoadGraph
    points_of_interest: PointsOfInterest
    layout: CityLayout = field(default_factory=CityLayout)

    @property
    def grid_size(self) -> int:
        return self.layout.grid_size


def create_street_grid(grid_size: int, road_step: int) -> RoadGraph:
    """
    Create the street graph of a square city.

    Every cell whose x or z coordinate is a multiple of road_step is a street;
    cells where both are multiples are intersections.

    Raises:
        ValueError: If grid_size or road_step <= 0
    """
    if grid_size <= 0 or road_step <= 0:
        raise ValueError(f"Grid size and road step must be positive, got {grid_size} and {road_step}")

    graph = RoadGraph()
    for gx in range(grid_size):
        for gz in range(grid_size):
            is_road_row = gx % road_step == 0
            is_road_col = gz % road_step == 0
            if is_road_row or is_road_col:
                graph.add_road(RoadNode(gx, gz), is_intersection=is_road_row and is_road_col)
    return graph


def create_lattice(width: int, height: int,
                   blocked_links: Iterable[Tuple[RoadNode, RoadNode]] = ()) -> RoadGraph:
    """
    Create a fully connected width x height lattice of street cells.

    Args:
        width: Number of cells along x
        height: Number of cells along z
        blocked_links: Pairs of adjacent cells to disconnect
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Lattice dimensions must be positive, got {width}x{height}")

    graph = RoadGraph()
    for gz in range(height):
        for gx in range(width):
            graph.add_road(RoadNode(gx, gz))
    for a, b in blocked_links:
        graph.block_link(a, b)
    return graph


def create_corridor(length: int) -> RoadGraph:
    """Create a straight 1 x length corridor along x."""
    return create_lattice(length, 1)


def create_city(layout: Optional[CityLayout] = None) -> City:
    """
    Create a city with its street grid and the home and shop destinations.

    Raises:
        ValueError: If a configured entrance is not a street cell
    """
    layout = layout or CityLayout()
    graph = create_street_grid(layout.grid_size, layout.road_step)

    pois = PointsOfInterest()
    for goal_id, entrance in (("home", layout.home_entrance), ("shop", layout.shop_entrance)):
        if entrance is not None and not graph.has_road(entrance):
            raise ValueError(f"Entrance {entrance} of {goal_id!r} is not a street cell")
        pois.add(goal_id, entrance)

    return City(graph=graph, points_of_interest=pois, layout=layout)


def random_road(graph: RoadGraph, rng: Optional[SeededRNG] = None,
                exclude: Iterable[RoadNode] = ()) -> RoadNode:
    """
    Pick a random street cell.

    Raises:
        ValueError: If no street cell is left after exclusions
    """
    rng = rng or SeededRNG()
    excluded = set(exclude)
    candidates = [node for node in graph.nodes() if node not in excluded]
    if not candidates:
        raise ValueError("No street cells available")
    return rng.choice(candidates)
