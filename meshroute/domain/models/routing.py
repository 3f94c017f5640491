"""Domain models for routing results."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .mesh import AssignedPortPoint, ConnectionSpec, PortPoint


@dataclass
class PathPoint:
    """A point along a resolved connection path.

    Endpoints carry no port point; every other point is a crossing between
    two capacity nodes.
    """
    x: float
    y: float
    z: int
    node_id: Optional[str]
    port_point: Optional[PortPoint] = None
    distance_traveled: float = 0.0

    @property
    def is_endpoint(self) -> bool:
        return self.port_point is None

    def as_tuple(self) -> Tuple[float, float, int]:
        return (self.x, self.y, self.z)


@dataclass
class ConnectionResult:
    """A connection paired with the start/end node ids and its resolved path."""
    connection: ConnectionSpec
    node_ids: Tuple[str, str]
    path: Optional[List[PathPoint]] = None
    port_points: List[AssignedPortPoint] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.connection.name

    @property
    def is_routed(self) -> bool:
        return self.path is not None
