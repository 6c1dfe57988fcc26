"""City Navigation Brains - decision making for agents on a street grid.

This package implements the shortest-path and Q-Learning brains that steer cars
and pedestrians across a procedurally generated city street graph.
"""

__version__ = "1.0.0"
__author__ = "City Navigation Demo"
