"""Region/port graph entities used by the best-first pathing search.

Entities compare by identity: two regions with the same id built from two
different meshes are different regions.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from .geometry import Coordinate
from .mesh import CapacityNode, ConnectionPoint, PortPoint


@dataclass(eq=False)
class Region:
    """A capacity node as seen by the search: its ports and current assignments."""
    region_id: str
    node: CapacityNode
    ports: List['Port'] = field(default_factory=list)
    assignments: List['Assignment'] = field(default_factory=list)

    @property
    def center(self) -> Coordinate:
        return self.node.center

    @property
    def width(self) -> float:
        return self.node.width

    @property
    def height(self) -> float:
        return self.node.height

    @property
    def contains_obstacle(self) -> bool:
        return self.node.contains_obstacle

    @property
    def contains_target(self) -> bool:
        return self.node.contains_target

    def __repr__(self) -> str:
        return f"Region({self.region_id!r})"


@dataclass(eq=False)
class PortAssignment:
    """Ownership record placed on a port by a solved route."""
    solved_route: 'SolvedRoute'
    connection: 'Connection'


@dataclass(eq=False)
class Port:
    """A crossing point joining exactly two regions.

    Routes of one network may share a port, so every route using the port
    keeps its own ``PortAssignment``.
    """
    port_id: str
    region1: Region
    region2: Region
    point: PortPoint
    rip_count: int = 0
    assignments: List[PortAssignment] = field(default_factory=list)

    @property
    def assignment(self) -> Optional[PortAssignment]:
        """The earliest route still holding the port, if any."""
        return self.assignments[0] if self.assignments else None

    def add_assignment(self, assignment: PortAssignment):
        if not any(a.solved_route is assignment.solved_route for a in self.assignments):
            self.assignments.append(assignment)

    def release(self, route: 'SolvedRoute') -> bool:
        """Drop ``route``'s hold on the port. Returns True when it had one."""
        kept = [a for a in self.assignments if a.solved_route is not route]
        released = len(kept) != len(self.assignments)
        self.assignments = kept
        return released

    def get_routes_outside_network(self, network_id: Optional[str]) -> List['SolvedRoute']:
        """Routes holding the port whose network differs from ``network_id``."""
        return [a.solved_route for a in self.assignments
                if a.connection.network_id != network_id]

    @property
    def x(self) -> float:
        return self.point.x

    @property
    def y(self) -> float:
        return self.point.y

    @property
    def z(self) -> int:
        return self.point.z

    def other_region(self, region: Region) -> Region:
        return self.region2 if region is self.region1 else self.region1

    def __repr__(self) -> str:
        return f"Port({self.port_id!r})"


@dataclass(eq=False)
class Connection:
    """A net to route between two regions.

    ``network_id`` groups electrically equivalent connections; routes that
    share it never conflict with each other.
    """
    connection_id: str
    network_id: str
    start_region: Region
    end_region: Region
    start_point: Optional[ConnectionPoint] = None
    end_point: Optional[ConnectionPoint] = None

    def __repr__(self) -> str:
        return f"Connection({self.connection_id!r})"


@dataclass(eq=False)
class Candidate:
    """One step of a path under consideration.

    Candidates form a tree through ``parent``; the path to a candidate is
    recovered by walking parents back to a root.
    """
    port: Port
    g: float
    h: float
    f: float
    last_region: Region
    next_region: Region
    parent: Optional['Candidate'] = None
    last_port: Optional[Port] = None
    routes_to_rip: FrozenSet['SolvedRoute'] = frozenset()

    @property
    def rip_required(self) -> bool:
        return bool(self.routes_to_rip)

    def get_path(self) -> List['Candidate']:
        path = []
        candidate = self
        while candidate is not None:
            path.append(candidate)
            candidate = candidate.parent
        path.reverse()
        return path


@dataclass(eq=False)
class SolvedRoute:
    """A completed path for one connection."""
    connection: Connection
    path: List[Candidate]
    required_rip: bool = False

    @property
    def cost(self) -> float:
        return self.path[-1].g if self.path else 0.0

    def get_traversed_regions(self) -> List[Region]:
        """Regions crossed by a port pair, in path order, without repeats."""
        regions = []
        for candidate in self.path:
            if candidate.last_port is None:
                continue
            if candidate.last_region not in regions:
                regions.append(candidate.last_region)
        return regions

    def __repr__(self) -> str:
        return f"SolvedRoute({self.connection.connection_id!r}, ports={len(self.path)})"


@dataclass(eq=False)
class Assignment:
    """Binds a solved route to the pair of ports it uses inside one region."""
    region_port1: Port
    region_port2: Port
    region: Region
    connection: Connection
    solved_route: SolvedRoute
