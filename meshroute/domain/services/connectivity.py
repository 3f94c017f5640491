"""Connectivity map grouping electrically equivalent connections into networks."""
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.mesh import CapacityNode, ConnectionSpec

logger = logging.getLogger(__name__)


class ConnectivityMap:
    """Union-find over connection names, port ids and off-board link ids."""

    def __init__(self):
        self._parent: Dict[str, str] = {}

    def _find(self, item: str) -> str:
        self._parent.setdefault(item, item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def _union(self, a: str, b: str):
        root_a = self._find(a)
        root_b = self._find(b)
        if root_a == root_b:
            return
        # Smallest id wins so network ids do not depend on insertion order
        if root_b < root_a:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a

    def add_connections(self, groups: Iterable[Sequence[str]]):
        """Merge every id in each group into one network."""
        for group in groups:
            ids = [item for item in group if item]
            if not ids:
                continue
            first = ids[0]
            self._find(first)
            for other in ids[1:]:
                self._union(first, other)

    def get_net_id(self, item: str) -> str:
        return self._find(item)

    def are_connected(self, a: str, b: str) -> bool:
        return self._find(a) == self._find(b)

    def get_ids_connected_to(self, item: str) -> List[str]:
        root = self._find(item)
        return sorted(key for key in self._parent if self._find(key) == root)

    def __contains__(self, item: str) -> bool:
        return item in self._parent


def _point_key(x: float, y: float, layer: Optional[str]) -> str:
    return f"point:{x:.4f},{y:.4f},{layer or ''}"


def build_connectivity_map(connections: Sequence[ConnectionSpec],
                           nodes: Sequence[CapacityNode] = ()) -> ConnectivityMap:
    """Build the connectivity map for a set of connections.

    Connections are merged when they share a root or net connection name,
    when they touch the same connection point, and when their endpoints sit
    in nodes linked by the same off-board connection.

    Args:
        connections: Connections to group
        nodes: Capacity nodes, used for off-board links

    Returns:
        ConnectivityMap keyed by connection name
    """
    conn_map = ConnectivityMap()

    for connection in connections:
        group = [connection.name]
        if connection.root_connection_name:
            group.append(connection.root_connection_name)
        if connection.net_connection_name:
            group.append(connection.net_connection_name)
        for point in connection.points_to_connect:
            if point.point_id:
                group.append(f"port:{point.point_id}")
            else:
                group.append(_point_key(point.x, point.y, point.get_primary_layer()))
        conn_map.add_connections([group])

    off_board_groups: Dict[str, List[str]] = {}
    for node in nodes:
        if not node.off_board_connection_id:
            continue
        off_board_groups.setdefault(node.off_board_connection_id, []).append(node.node_id)
        for linked_node_id in node.off_board_connected_node_ids:
            off_board_groups[node.off_board_connection_id].append(linked_node_id)

    if off_board_groups:
        node_to_group = {}
        for group_id, node_ids in off_board_groups.items():
            for node_id in node_ids:
                node_to_group[node_id] = group_id
        nodes_by_id = {node.node_id: node for node in nodes}
        for connection in connections:
            for point in connection.points_to_connect:
                for node_id, group_id in node_to_group.items():
                    node = nodes_by_id.get(node_id)
                    if node is not None and node.bounds.contains(point.x, point.y):
                        conn_map.add_connections([[connection.name, f"offboard:{group_id}"]])

    logger.debug(f"[CONNECTIVITY] Built map for {len(connections)} connections")
    return conn_map
