"""Application service chaining the routing phases as sub-solvers."""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ...algorithms.base.solver import BaseSolver
from ...algorithms.cramped.multi_target import MultiTargetNecessaryCrampedPortPointSolver
from ...algorithms.portpoint.pathing_solver import PortPointPathingSolver
from ...domain.models.mesh import CapacityNode, ConnectionSpec, NodeWithPortPoints
from ...domain.models.routing import ConnectionResult
from ...shared.configuration.settings import PathingSettings

logger = logging.getLogger(__name__)


class PortPointRoutingPipeline(BaseSolver):
    """Cramped port filtering followed by port point pathing.

    Each phase runs as the active sub-solver; a failing phase fails the
    pipeline with the phase's own error message.
    """

    MAX_ITERATIONS = 1_000_000

    def __init__(self, nodes: Sequence[CapacityNode], connections: Sequence[ConnectionSpec],
                 settings: Optional[PathingSettings] = None,
                 filter_cramped_port_points: bool = True):
        """Initialize the pipeline.

        Args:
            nodes: Capacity nodes with their port points
            connections: Connections to route
            settings: Pathing settings; defaults when None
            filter_cramped_port_points: Run the cramped port filter first
        """
        super().__init__()
        self.input_nodes = list(nodes)
        self.connections = list(connections)
        self.settings = settings or PathingSettings()

        self.phases: List[Tuple[str, Callable[[], BaseSolver]]] = []
        if filter_cramped_port_points:
            self.phases.append(("cramped_port_filter", self._create_cramped_solver))
        self.phases.append(("port_point_pathing", self._create_pathing_solver))

        self.current_phase_index = 0
        self.current_phase_name: Optional[str] = None
        self.filtered_nodes: List[CapacityNode] = list(nodes)
        self.cramped_solver: Optional[MultiTargetNecessaryCrampedPortPointSolver] = None
        self.pathing_solver: Optional[PortPointPathingSolver] = None
        self.phase_iterations: Dict[str, int] = {}

    def _create_cramped_solver(self) -> BaseSolver:
        self.cramped_solver = MultiTargetNecessaryCrampedPortPointSolver(self.input_nodes, self.connections)
        return self.cramped_solver

    def _create_pathing_solver(self) -> BaseSolver:
        self.pathing_solver = PortPointPathingSolver(self.filtered_nodes, self.connections, settings=self.settings)
        return self.pathing_solver

    def _consume_phase_output(self, name: str, solver: BaseSolver):
        self.phase_iterations[name] = solver.iterations
        if name == "cramped_port_filter":
            self.filtered_nodes = solver.get_output()
            removed = (sum(len(node.port_points) for node in self.input_nodes) -
                       sum(len(node.port_points) for node in self.filtered_nodes))
            logger.info(f"[PIPELINE] Cramped filter removed {removed} port points")

    def _step(self):
        if self.active_sub_solver is not None:
            child = self.step_active_sub_solver()
            if child is None:
                return
            self._consume_phase_output(self.current_phase_name, child)
            self.active_sub_solver = None
            self.current_phase_index += 1
            return

        if self.current_phase_index >= len(self.phases):
            self.solved = True
            return

        name, factory = self.phases[self.current_phase_index]
        self.current_phase_name = name
        self.solver_logger.bind(phase=name).info("[PIPELINE] Starting phase")
        # Construction errors (e.g. a malformed mesh) are converted into a failure by step()
        self.active_sub_solver = factory()

    def get_output(self) -> List[ConnectionResult]:
        return self.pathing_solver.get_output() if self.pathing_solver else []

    def get_nodes_with_port_points(self) -> List[NodeWithPortPoints]:
        return self.pathing_solver.get_nodes_with_port_points() if self.pathing_solver else []

    def get_statistics(self) -> Dict[str, Any]:
        stats = super().get_statistics()
        stats["phase_iterations"] = dict(self.phase_iterations)
        stats["current_phase"] = self.current_phase_name
        if self.pathing_solver is not None:
            stats["pathing"] = self.pathing_solver.get_statistics()
        return stats
