"""Domain models for the capacity mesh handed to the pathing stage."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .geometry import Bounds, Coordinate


@dataclass
class PortPoint:
    """A candidate crossing point on the shared edge of two capacity nodes."""
    port_point_id: str
    x: float
    y: float
    z: int
    connection_node_ids: Tuple[str, str]
    dist_to_centermost_port_on_z: Optional[float] = None
    cramped: bool = False

    def __post_init__(self):
        self.connection_node_ids = tuple(self.connection_node_ids)


@dataclass
class CapacityNode:
    """A rectangular capacity region of the board together with its port points."""
    node_id: str
    center: Coordinate
    width: float
    height: float
    port_points: List[PortPoint] = field(default_factory=list)
    available_z: List[int] = field(default_factory=lambda: [0])
    contains_obstacle: bool = False
    contains_target: bool = False
    off_board_connection_id: Optional[str] = None
    off_board_connected_node_ids: List[str] = field(default_factory=list)

    @property
    def bounds(self) -> Bounds:
        return Bounds.from_center(self.center, self.width, self.height)

    @property
    def layer_count(self) -> int:
        return max(self.available_z, default=0) + 1


@dataclass(frozen=True)
class ConnectionPoint:
    """An endpoint a connection must reach.

    Either ``layer`` or ``layers`` names the copper layers the point sits on
    ("top", "bottom", "inner1", "layer2", ...).
    """
    x: float
    y: float
    layer: Optional[str] = None
    layers: Optional[Tuple[str, ...]] = None
    point_id: Optional[str] = None

    def get_layers(self) -> List[str]:
        if self.layers:
            return list(self.layers)
        if self.layer:
            return [self.layer]
        return []

    def get_primary_layer(self) -> Optional[str]:
        layers = self.get_layers()
        return layers[0] if layers else None


@dataclass
class ConnectionSpec:
    """A requested two point connection as it arrives from the previous stage."""
    name: str
    points_to_connect: List[ConnectionPoint]
    root_connection_name: Optional[str] = None
    net_connection_name: Optional[str] = None

    @property
    def start_point(self) -> Optional[ConnectionPoint]:
        return self.points_to_connect[0] if self.points_to_connect else None

    @property
    def end_point(self) -> Optional[ConnectionPoint]:
        return self.points_to_connect[-1] if self.points_to_connect else None


@dataclass(frozen=True)
class AssignedPortPoint:
    """A port point claimed by a connection inside one capacity node."""
    x: float
    y: float
    z: int
    connection_name: str
    root_connection_name: Optional[str] = None
    port_point_id: Optional[str] = None


@dataclass
class NodeWithPortPoints:
    """A capacity node paired with the port points routed through it."""
    node_id: str
    center: Coordinate
    width: float
    height: float
    port_points: List[AssignedPortPoint]
    available_z: List[int] = field(default_factory=lambda: [0])
    contains_target: bool = False

    @classmethod
    def from_node(cls, node: CapacityNode, port_points: List[AssignedPortPoint]) -> 'NodeWithPortPoints':
        return cls(
            node_id=node.node_id,
            center=node.center,
            width=node.width,
            height=node.height,
            port_points=list(port_points),
            available_z=list(node.available_z),
            contains_target=node.contains_target,
        )
