"""Resolve connection endpoints to regions and build search connections."""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ...domain.models.geometry import Coordinate
from ...domain.models.graph import Connection, Region
from ...domain.models.mesh import CapacityNode, ConnectionPoint, ConnectionSpec
from ...domain.models.routing import ConnectionResult
from ...domain.services.connectivity import ConnectivityMap, build_connectivity_map
from ...shared.exceptions import EndpointResolutionError, MeshStructureError, ValidationError
from ...shared.utils.validation_utils import validate_coordinates, validate_net_id

logger = logging.getLogger(__name__)


def find_node_for_point(point: ConnectionPoint, nodes: Sequence[CapacityNode]) -> Optional[CapacityNode]:
    """Pick the node an endpoint belongs to.

    A target node containing the point wins, then any node containing it,
    then the nearest node.
    """
    if not nodes:
        return None

    containing = [node for node in nodes if node.bounds.contains(point.x, point.y)]
    targets = [node for node in containing if node.contains_target]
    if targets:
        here = Coordinate(point.x, point.y)
        return min(targets, key=lambda n: (n.center.distance_to(here), n.node_id))
    if containing:
        return containing[0]
    return min(nodes, key=lambda n: (n.bounds.distance_to_point(point.x, point.y), n.node_id))


def build_connections(connection_specs: Sequence[ConnectionSpec],
                      nodes: Sequence[CapacityNode],
                      region_map: Dict[str, Region],
                      connectivity_map: Optional[ConnectivityMap] = None
                      ) -> Tuple[List[Connection], List[ConnectionResult]]:
    """Build search connections and empty results, in input order.

    Args:
        connection_specs: Requested connections
        nodes: Capacity nodes of the mesh
        region_map: Regions keyed by node id
        connectivity_map: Optional precomputed connectivity map

    Returns:
        (connections, connection_results)

    Raises:
        EndpointResolutionError: if a connection has fewer than two points or
            no node to place an endpoint in
        MeshStructureError: if a resolved node has no region
    """
    if connectivity_map is None:
        connectivity_map = build_connectivity_map(connection_specs, nodes)

    connections = []
    results = []
    seen = set()
    for spec in connection_specs:
        if spec.name in seen:
            raise EndpointResolutionError(f"Duplicate connection name {spec.name}", net_id=spec.name)
        seen.add(spec.name)

        if len(spec.points_to_connect) < 2:
            raise EndpointResolutionError(
                f"Connection {spec.name} needs two points, got {len(spec.points_to_connect)}",
                net_id=spec.name,
            )
        try:
            validate_net_id(spec.name)
            for point in spec.points_to_connect:
                validate_coordinates(point.x, point.y)
        except ValidationError as e:
            raise EndpointResolutionError(f"Invalid connection {spec.name!r}: {e.args[0]}",
                                          net_id=spec.name) from e

        start_node = find_node_for_point(spec.start_point, nodes)
        end_node = find_node_for_point(spec.end_point, nodes)
        if start_node is None or end_node is None:
            raise EndpointResolutionError(f"No capacity node for connection {spec.name}", net_id=spec.name)

        start_region = region_map.get(start_node.node_id)
        end_region = region_map.get(end_node.node_id)
        if start_region is None or end_region is None:
            raise MeshStructureError(f"Missing region for connection {spec.name}",
                                     node_id=start_node.node_id if start_region is None else end_node.node_id)

        connections.append(Connection(
            connection_id=spec.name,
            network_id=connectivity_map.get_net_id(spec.name),
            start_region=start_region,
            end_region=end_region,
            start_point=spec.start_point,
            end_point=spec.end_point,
        ))
        results.append(ConnectionResult(connection=spec, node_ids=(start_node.node_id, end_node.node_id)))

    logger.info(f"[CONNECTIONS] Prepared {len(connections)} connections")
    return connections, results
