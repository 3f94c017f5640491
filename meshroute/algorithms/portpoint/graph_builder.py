"""Build the region/port graph from capacity nodes."""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ...domain.models.geometry import distance
from ...domain.models.graph import Port, Region
from ...domain.models.mesh import CapacityNode, PortPoint
from ...shared.exceptions import MeshStructureError, ValidationError
from ...shared.utils.validation_utils import (
    validate_coordinates, validate_layer_index, validate_positive_number
)

logger = logging.getLogger(__name__)


@dataclass
class RegionGraph:
    """Regions and ports built from one input mesh."""
    regions: List[Region] = field(default_factory=list)
    ports: List[Port] = field(default_factory=list)
    region_map: Dict[str, Region] = field(default_factory=dict)
    port_point_map: Dict[str, PortPoint] = field(default_factory=dict)


def _fill_centermost_distances(port_points: Sequence[PortPoint]):
    # Group by shared edge and layer; the centermost port sits nearest the group centroid
    groups = defaultdict(list)
    for point in port_points:
        key = (tuple(sorted(point.connection_node_ids)), point.z)
        groups[key].append(point)

    for points in groups.values():
        cx = sum(p.x for p in points) / len(points)
        cy = sum(p.y for p in points) / len(points)
        centermost = min(points, key=lambda p: (distance(p.x, p.y, cx, cy), p.port_point_id))
        for point in points:
            if point.dist_to_centermost_port_on_z is None:
                point.dist_to_centermost_port_on_z = distance(point.x, point.y, centermost.x, centermost.y)


def build_region_graph(nodes: Sequence[CapacityNode]) -> RegionGraph:
    """Create one region per node and one port per distinct port point.

    A port point listed by both of its nodes becomes a single port linked to
    both regions.

    Args:
        nodes: Capacity nodes with their port points

    Returns:
        RegionGraph

    Raises:
        MeshStructureError: if node ids repeat, or a port point names a node
            that does not exist or does not join exactly two nodes
    """
    graph = RegionGraph()

    for node in nodes:
        if node.node_id in graph.region_map:
            raise MeshStructureError(f"Duplicate capacity node id {node.node_id}", node_id=node.node_id)
        try:
            validate_coordinates(node.center.x, node.center.y)
            validate_positive_number(node.width, "width")
            validate_positive_number(node.height, "height")
        except ValidationError as e:
            raise MeshStructureError(f"Invalid capacity node {node.node_id}: {e.args[0]}",
                                     node_id=node.node_id) from e
        region = Region(region_id=node.node_id, node=node)
        graph.regions.append(region)
        graph.region_map[node.node_id] = region

    for node in nodes:
        for port_point in node.port_points:
            if port_point.port_point_id in graph.port_point_map:
                continue
            if len(port_point.connection_node_ids) != 2:
                raise MeshStructureError(
                    f"Port point {port_point.port_point_id} must join exactly two nodes, "
                    f"got {list(port_point.connection_node_ids)}",
                    port_id=port_point.port_point_id,
                )
            try:
                validate_coordinates(port_point.x, port_point.y)
                validate_layer_index(port_point.z)
            except ValidationError as e:
                raise MeshStructureError(f"Invalid port point {port_point.port_point_id}: {e.args[0]}",
                                         port_id=port_point.port_point_id) from e
            node_id1, node_id2 = port_point.connection_node_ids
            for node_id in (node_id1, node_id2):
                if node_id not in graph.region_map:
                    raise MeshStructureError(
                        f"Port point {port_point.port_point_id} references unknown node {node_id}",
                        node_id=node_id,
                        port_id=port_point.port_point_id,
                    )

            graph.port_point_map[port_point.port_point_id] = port_point
            region1 = graph.region_map[node_id1]
            region2 = graph.region_map[node_id2]
            port = Port(port_id=port_point.port_point_id, region1=region1, region2=region2, point=port_point)
            graph.ports.append(port)
            region1.ports.append(port)
            region2.ports.append(port)

    _fill_centermost_distances(list(graph.port_point_map.values()))

    logger.info(f"[GRAPH] Built {len(graph.regions)} regions and {len(graph.ports)} ports")
    return graph
