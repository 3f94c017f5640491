"""Drop cramped port points that no target actually needs."""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Set

from ...domain.models.mesh import CapacityNode, ConnectionSpec, PortPoint
from ...shared.exceptions import MeshStructureError
from ..base.solver import BaseSolver
from .single_target import ExploredPortPoint, SingleTargetNecessaryCrampedPortPointSolver

logger = logging.getLogger(__name__)

SEARCH_DEPTH = 2


class MultiTargetNecessaryCrampedPortPointSolver(BaseSolver):
    """Filter cramped port points around obstacle nodes that hold connection endpoints.

    Each such target is explored twice at most: once ignoring cramped port
    points, and, when every reachable port is blocked by obstacles, once more
    with cramped port points allowed. In the second pass the cramped port
    points along the cheapest unblocked path are kept. Every cramped port
    point not kept is removed.
    """

    def __init__(self, nodes: Sequence[CapacityNode], connections: Sequence[ConnectionSpec],
                 depth_limit: int = SEARCH_DEPTH):
        super().__init__()
        self.nodes = list(nodes)
        self.connections = list(connections)
        self.depth_limit = depth_limit

        self.node_map: Dict[str, CapacityNode] = {}
        self.node_port_points: Dict[str, List[PortPoint]] = {}
        self.targets: List[CapacityNode] = []
        self.unprocessed_targets: List[CapacityNode] = []
        self.current_target: Optional[CapacityNode] = None
        self.running_cramped_pass = False
        self.candidates_at_depth: List[ExploredPortPoint] = []
        self.cramped_to_keep: Set[str] = set()
        self.warnings: List[str] = []

    def _setup(self):
        self.node_map = {node.node_id: node for node in self.nodes}
        points = [point for connection in self.connections for point in connection.points_to_connect]
        self.targets = [
            node for node in self.nodes
            if node.contains_obstacle
            and any(node.bounds.distance_to_point(p.x, p.y) <= 0 for p in points)
        ]
        self.unprocessed_targets = sorted(self.targets, key=lambda n: (n.center.x, n.node_id))

        seen = set()
        for node in self.nodes:
            for port in node.port_points:
                if port.port_point_id in seen:
                    continue
                seen.add(port.port_point_id)
                for node_id in port.connection_node_ids:
                    if node_id not in self.node_map:
                        raise MeshStructureError(f"Could not find capacity node for id {node_id}",
                                                 node_id=node_id, port_id=port.port_point_id)
                    self.node_port_points.setdefault(node_id, []).append(port)

        logger.debug(f"[CRAMPED] {len(self.targets)} obstacle targets to check")

    def _is_blocked(self, explored: ExploredPortPoint) -> bool:
        return any(self.node_map[node_id].contains_obstacle for node_id in explored.port.connection_node_ids)

    def _all_blocked(self, candidates: List[ExploredPortPoint]) -> bool:
        return all(self._is_blocked(candidate) for candidate in candidates)

    def _start_sub_solver(self, ignore_cramped: bool):
        self.active_sub_solver = SingleTargetNecessaryCrampedPortPointSolver(
            target=self.current_target,
            node_port_points=self.node_port_points,
            node_map=self.node_map,
            depth_limit=self.depth_limit,
            ignore_cramped=ignore_cramped,
        )

    def _step(self):
        if self.active_sub_solver is not None:
            child = self.step_active_sub_solver()
            if child is None:
                return
            self.candidates_at_depth = child.get_output()
            self.active_sub_solver = None
            self._finish_pass()
            return

        self.current_target = self.unprocessed_targets.pop(0) if self.unprocessed_targets else None
        if self.current_target is None:
            self.solved = True
            return
        self.running_cramped_pass = False
        self.candidates_at_depth = []
        self._start_sub_solver(ignore_cramped=True)

    def _finish_pass(self):
        target_id = self.current_target.node_id
        if not self.running_cramped_pass:
            if not self.candidates_at_depth or self._all_blocked(self.candidates_at_depth):
                self.running_cramped_pass = True
                self._start_sub_solver(ignore_cramped=False)
                return
            self.current_target = None
            return

        cramped = [
            candidate for candidate in self.candidates_at_depth
            if candidate.cramped_count > 0 and not self._is_blocked(candidate)
        ]
        cramped.sort(key=lambda c: (c.cost, c.port.port_point_id))
        if cramped:
            kept = [port.port_point_id for port in cramped[0].get_path_ports() if port.cramped]
            self.cramped_to_keep.update(kept)
            logger.debug(f"[CRAMPED] Keeping {', '.join(kept)} for {target_id}")
        else:
            message = f"No usable port points for capacity node {target_id} even after including cramped port points"
            self.warnings.append(message)
            logger.warning(f"[CRAMPED] {message}")

        self.running_cramped_pass = False
        self.current_target = None

    def is_kept(self, port: PortPoint) -> bool:
        return not port.cramped or port.port_point_id in self.cramped_to_keep

    def get_output(self) -> List[CapacityNode]:
        """Copies of the input nodes without the unneeded cramped port points."""
        return [
            replace(node, port_points=[port for port in node.port_points if self.is_kept(port)])
            for node in self.nodes
        ]

    def _visualize(self) -> Dict[str, Any]:
        current_id = self.current_target.node_id if self.current_target else None
        rects = [{
            "center": (node.center.x, node.center.y),
            "width": node.width,
            "height": node.height,
            "fill": "rgba(255, 0, 0, 0.5)" if node.node_id == current_id else "rgba(255, 0, 0, 0.2)",
        } for node in self.targets]
        points = [{
            "x": candidate.port.x,
            "y": candidate.port.y,
            "color": "blue" if candidate.port.cramped else "green",
        } for candidate in self.candidates_at_depth]
        return {"rects": rects, "points": points, "lines": [], "title": self.get_solver_name()}
