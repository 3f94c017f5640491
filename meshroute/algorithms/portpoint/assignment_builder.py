"""Turn solved routes into concrete port point assignments."""
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from ...domain.models.geometry import distance
from ...domain.models.graph import Candidate, SolvedRoute
from ...domain.models.mesh import AssignedPortPoint, CapacityNode, ConnectionSpec
from ...domain.models.routing import ConnectionResult, PathPoint
from .endpoint_resolution import DEFAULT_Z, get_z_from_layer, to_endpoint_within_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortOwner:
    connection_name: str
    root_connection_name: Optional[str] = None


@dataclass
class PortPointAssignments:
    """Everything the assignment build produces."""
    connections_with_results: List[ConnectionResult] = field(default_factory=list)
    assigned_port_points: Dict[str, PortOwner] = field(default_factory=dict)
    node_assigned_port_points: Dict[str, List[AssignedPortPoint]] = field(default_factory=dict)


def get_candidate_region_id(candidate: Candidate) -> str:
    if candidate.next_region is not None:
        return candidate.next_region.region_id
    return candidate.port.region2.region_id


def build_port_point_path(route: SolvedRoute, result: ConnectionResult) -> List[PathPoint]:
    """Start endpoint, every port of the route, then the end endpoint."""
    connection = result.connection
    start_point = connection.start_point
    end_point = connection.end_point

    path = [PathPoint(
        x=start_point.x if start_point else 0.0,
        y=start_point.y if start_point else 0.0,
        z=get_z_from_layer(start_point.get_primary_layer() if start_point else None, DEFAULT_Z),
        node_id=result.node_ids[0],
    )]

    for candidate in route.path:
        prev = path[-1]
        port_point = candidate.port.point
        path.append(PathPoint(
            x=port_point.x,
            y=port_point.y,
            z=port_point.z,
            node_id=get_candidate_region_id(candidate),
            port_point=port_point,
            distance_traveled=prev.distance_traveled + distance(prev.x, prev.y, port_point.x, port_point.y),
        ))

    last = path[-1]
    end_x = end_point.x if end_point else last.x
    end_y = end_point.y if end_point else last.y
    path.append(PathPoint(
        x=end_x,
        y=end_y,
        z=get_z_from_layer(end_point.get_primary_layer() if end_point else None, DEFAULT_Z),
        node_id=result.node_ids[1],
        distance_traveled=last.distance_traveled + distance(last.x, last.y, end_x, end_y),
    ))
    return path


def assign_port_points_for_path(path: List[PathPoint], connection: ConnectionSpec,
                                assigned_port_points: Dict[str, PortOwner],
                                node_assigned_port_points: Dict[str, List[AssignedPortPoint]]
                                ) -> List[AssignedPortPoint]:
    """Record every crossing of a path under both nodes it joins."""
    assigned = []
    for point in path:
        port_point = point.port_point
        if port_point is None:
            continue
        assigned_port_points[port_point.port_point_id] = PortOwner(
            connection_name=connection.name,
            root_connection_name=connection.root_connection_name,
        )
        assignment = AssignedPortPoint(
            x=port_point.x,
            y=port_point.y,
            z=port_point.z,
            connection_name=connection.name,
            root_connection_name=connection.root_connection_name,
            port_point_id=port_point.port_point_id,
        )
        assigned.append(assignment)
        for node_id in port_point.connection_node_ids:
            node_assigned_port_points.setdefault(node_id, []).append(assignment)
    return assigned


def add_connection_endpoints_to_node_assignments(path: List[PathPoint], connection: ConnectionSpec,
                                                 node_map: Dict[str, CapacityNode],
                                                 node_assigned_port_points: Dict[str, List[AssignedPortPoint]]):
    """Add both endpoints to their nodes so crossing counts see them."""
    if len(path) < 2:
        return

    for endpoint_name, point, endpoint, neighbour in (
        ("start", connection.start_point, path[0], path[1]),
        ("end", connection.end_point, path[-1], path[-2]),
    ):
        if point is None:
            continue
        # The path's own layer at the endpoint is the adjacent crossing's layer
        candidate_z = neighbour.z if neighbour.port_point is not None else endpoint.z
        x, y, z = to_endpoint_within_bounds(
            point, candidate_z, node_map.get(endpoint.node_id), endpoint_name, connection.name,
        )
        node_assigned_port_points.setdefault(endpoint.node_id, []).append(AssignedPortPoint(
            x=x,
            y=y,
            z=z,
            connection_name=connection.name,
            root_connection_name=connection.root_connection_name,
        ))


def build_port_point_assignments(solved_routes: Sequence[SolvedRoute],
                                 connection_results: Sequence[ConnectionResult],
                                 nodes: Sequence[CapacityNode]) -> PortPointAssignments:
    """Materialize solved routes as port point assignments.

    The inputs are not modified; annotated copies of the connection results
    are returned.

    Args:
        solved_routes: Final solved routes
        connection_results: One result per requested connection
        nodes: Capacity nodes of the mesh

    Returns:
        PortPointAssignments
    """
    results = [replace(result, path=None, port_points=[]) for result in connection_results]
    result_map = {result.connection.name: result for result in results}
    node_map = {node.node_id: node for node in nodes}
    output = PortPointAssignments(
        connections_with_results=results,
        node_assigned_port_points={node.node_id: [] for node in nodes},
    )

    for route in solved_routes:
        result = result_map.get(route.connection.connection_id)
        if result is None:
            logger.error(f"[ASSIGN] No connection result for {route.connection.connection_id}")
            continue
        path = build_port_point_path(route, result)
        result.path = path
        result.port_points = assign_port_points_for_path(
            path, result.connection, output.assigned_port_points, output.node_assigned_port_points,
        )
        add_connection_endpoints_to_node_assignments(
            path, result.connection, node_map, output.node_assigned_port_points,
        )

    logger.debug(f"[ASSIGN] Built assignments for {len(solved_routes)} routes")
    return output
