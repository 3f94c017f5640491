"""Bounded-depth breadth-first exploration of port points around one target node."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from ...domain.models.mesh import CapacityNode, PortPoint
from ...shared.exceptions import MeshStructureError
from ..base.solver import BaseSolver

logger = logging.getLogger(__name__)

CRAMPED_COST = 1000


@dataclass
class ExploredPortPoint:
    port: PortPoint
    depth: int
    parent: Optional['ExploredPortPoint'] = None
    cramped_count: int = 0

    @property
    def cost(self) -> float:
        return self.depth + self.cramped_count * CRAMPED_COST

    def get_path_ports(self) -> List[PortPoint]:
        """Port points from the target outwards."""
        ports = []
        explored = self
        while explored is not None:
            ports.append(explored.port)
            explored = explored.parent
        ports.reverse()
        return ports


class SingleTargetNecessaryCrampedPortPointSolver(BaseSolver):
    """Collect the port points exactly ``depth_limit`` hops away from a target.

    Each step expands one depth level.
    """

    def __init__(self, target: CapacityNode,
                 node_port_points: Dict[str, List[PortPoint]],
                 node_map: Dict[str, CapacityNode],
                 depth_limit: int = 2,
                 ignore_cramped: bool = True):
        super().__init__()
        if depth_limit < 1:
            raise ValueError("Depth limit must be at least 1")
        self.target = target
        self.node_port_points = node_port_points
        self.node_map = node_map
        self.depth_limit = depth_limit
        self.ignore_cramped = ignore_cramped
        self.frontier: List[ExploredPortPoint] = []
        self.results: List[ExploredPortPoint] = []
        self.visited: Set[str] = set()

    def _setup(self):
        for port in self.node_port_points.get(self.target.node_id, []):
            if self.ignore_cramped and port.cramped:
                continue
            if port.port_point_id in self.visited:
                continue
            self.visited.add(port.port_point_id)
            self.frontier.append(ExploredPortPoint(port=port, depth=1, cramped_count=int(port.cramped)))

    def _step(self):
        if not self.frontier:
            self.solved = True
            return

        next_frontier = []
        for explored in self.frontier:
            if explored.depth >= self.depth_limit:
                self.results.append(explored)
                continue
            for node_id in explored.port.connection_node_ids:
                if node_id not in self.node_map:
                    raise MeshStructureError(f"Could not find capacity node for id {node_id}", node_id=node_id)
                for port in self.node_port_points.get(node_id, []):
                    if self.ignore_cramped and port.cramped:
                        continue
                    if port.port_point_id in self.visited:
                        continue
                    self.visited.add(port.port_point_id)
                    next_frontier.append(ExploredPortPoint(
                        port=port,
                        depth=explored.depth + 1,
                        parent=explored,
                        cramped_count=explored.cramped_count + int(port.cramped),
                    ))
        self.frontier = next_frontier

    def get_output(self) -> List[ExploredPortPoint]:
        return list(self.results)

    def _visualize(self) -> Dict[str, Any]:
        points = [{
            "x": explored.port.x,
            "y": explored.port.y,
            "color": "blue" if explored.port.cramped else "green",
        } for explored in self.frontier + self.results]
        return {"points": points, "lines": [], "rects": [],
                "title": f"{self.get_solver_name()} {self.target.node_id}"}
