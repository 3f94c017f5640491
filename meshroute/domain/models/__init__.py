"""Domain models."""
from .geometry import Coordinate, Bounds, distance, do_segments_intersect, point_to_line_distance
from .mesh import (
    PortPoint, CapacityNode, ConnectionPoint, ConnectionSpec,
    AssignedPortPoint, NodeWithPortPoints
)
from .graph import Region, Port, PortAssignment, Connection, Candidate, SolvedRoute, Assignment
from .routing import PathPoint, ConnectionResult

__all__ = [
    'Coordinate', 'Bounds', 'distance', 'do_segments_intersect', 'point_to_line_distance',
    'PortPoint', 'CapacityNode', 'ConnectionPoint', 'ConnectionSpec',
    'AssignedPortPoint', 'NodeWithPortPoints',
    'Region', 'Port', 'PortAssignment', 'Connection', 'Candidate', 'SolvedRoute', 'Assignment',
    'PathPoint', 'ConnectionResult'
]
