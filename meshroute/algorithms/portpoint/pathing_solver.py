"""Congestion-aware port point pathing with rip-up and reroute."""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from ...domain.models.geometry import Coordinate, do_segments_intersect
from ...domain.models.graph import Assignment, Candidate, Port, Region, SolvedRoute
from ...domain.models.mesh import (
    AssignedPortPoint, CapacityNode, ConnectionSpec, NodeWithPortPoints
)
from ...domain.models.routing import ConnectionResult
from ...domain.services import board_score
from ...domain.services.congestion import (
    calculate_node_probability_of_failure, get_intra_node_crossings
)
from ...domain.services.connectivity import ConnectivityMap
from ...shared.configuration.settings import PathingSettings
from ...shared.exceptions import ConfigurationError
from ..base.region_graph_solver import RegionGraphSolver
from .assignment_builder import PortOwner, build_port_point_assignments
from .candidate_selection import (
    cap_candidates_by_cost, filter_obstacle_candidates, select_center_first_candidates
)
from .congestion_memory import CongestionMemory
from .connections import build_connections
from .cost_model import PathingCostModel
from .graph_builder import build_region_graph
from .rip_policy import RipBudget, RipDecision, RipPolicy
from .visualization import visualize_pathing_solver

logger = logging.getLogger(__name__)


def _resolve_settings(settings: Optional[PathingSettings], overrides: Dict[str, Any]) -> PathingSettings:
    resolved = replace(settings) if settings is not None else PathingSettings()
    for key, value in overrides.items():
        if not hasattr(resolved, key):
            raise ConfigurationError(f"Unknown pathing setting: {key}", error_code="PATHING_SETTINGS")
        setattr(resolved, key, value)
    errors = resolved.validate()
    if errors:
        raise ConfigurationError(
            "Invalid pathing settings: " + "; ".join(errors),
            error_code="PATHING_SETTINGS",
            details={"errors": errors},
        )
    return resolved


class PortPointPathingSolver(RegionGraphSolver):
    """Routes every connection through the capacity mesh, ripping routes as needed.

    Once all connections are routed the solved routes are turned into port
    point assignments and the board is scored. A board scoring below
    ``min_allowed_board_score`` fails the solve.

    Weights come from ``settings`` and may be overridden by keyword, e.g.
    ``PortPointPathingSolver(nodes, connections, rip_cost=4.0)``.
    """

    def __init__(self, nodes: Sequence[CapacityNode], connections: Sequence[ConnectionSpec],
                 settings: Optional[PathingSettings] = None,
                 connectivity_map: Optional[ConnectivityMap] = None,
                 **overrides):
        self.settings = _resolve_settings(settings, overrides)
        s = self.settings

        graph = build_region_graph(nodes)
        search_connections, results = build_connections(connections, nodes, graph.region_map, connectivity_map)

        super().__init__(
            graph.regions, graph.ports, search_connections,
            greedy_multiplier=s.greedy_multiplier,
            ripping_enabled=s.ripping_enabled,
            rip_cost=s.rip_cost,
        )
        self.MAX_ITERATIONS = s.max_iterations

        self.nodes = list(nodes)
        self.node_map: Dict[str, CapacityNode] = {node.node_id: node for node in nodes}
        self.region_map: Dict[str, Region] = graph.region_map
        self.port_point_map = graph.port_point_map

        self.cost_model = PathingCostModel(
            port_usage_penalty=s.port_usage_penalty,
            region_transition_penalty=s.region_transition_penalty,
            region_size_penalty_factor=s.region_size_penalty_factor,
            center_bias_factor=s.center_bias_factor,
            memory_pf_factor=s.memory_pf_factor,
            straight_line_deviation_penalty=s.straight_line_deviation_penalty,
        )
        self.congestion_memory = CongestionMemory(decay=s.memory_decay)
        self.rip_budget = RipBudget(max_rips=s.max_rips, max_region_rips=s.max_region_rips)
        self.rip_policy = RipPolicy(
            self.rip_budget,
            rip_node_pf_threshold_start=s.rip_node_pf_threshold_start,
            random_rip_fraction=s.random_rip_fraction,
        )
        self.max_candidates_per_region = s.max_candidates_per_region
        self.use_center_first_selection = s.use_center_first_selection
        self.min_allowed_board_score = s.min_allowed_board_score

        self.connections_with_results: List[ConnectionResult] = results
        self.assigned_port_points: Dict[str, PortOwner] = {}
        self.node_assigned_port_points: Dict[str, List[AssignedPortPoint]] = {}
        self.assignments_built = False
        self.guardrail_checked = False
        self.board_score: Optional[float] = None
        self.last_rip_decision: Optional[RipDecision] = None
        self.rip_history: List[Tuple[str, Tuple[str, ...]]] = []

    # ------------------------------------------------------------------
    # Search hooks
    # ------------------------------------------------------------------

    def _straight_line(self) -> Optional[Tuple[Coordinate, Coordinate]]:
        connection = self.current_connection
        if connection is None:
            return None
        start = (Coordinate(connection.start_point.x, connection.start_point.y)
                 if connection.start_point else connection.start_region.center)
        end = (Coordinate(connection.end_point.x, connection.end_point.y)
               if connection.end_point else connection.end_region.center)
        return start, end

    def compute_h(self, candidate: Candidate) -> float:
        end_center = self.current_end_region.center if self.current_end_region else None
        return self.cost_model.compute_h(
            candidate.port,
            end_center,
            memory_pf=self.congestion_memory.get(candidate.next_region.region_id),
            straight_line=self._straight_line(),
        )

    def compute_increased_region_cost_if_ports_are_used(self, region: Region,
                                                        port_a: Port, port_b: Port) -> float:
        return self.cost_model.region_transition_cost(region, port_a, port_b)

    def get_port_usage_penalty(self, port: Port) -> float:
        return self.cost_model.port_usage_cost(port)

    def get_rips_required_for_port_usage(self, region: Region,
                                         port_a: Port, port_b: Port) -> List[Assignment]:
        """Assignments of other networks whose port pair crosses ``port_a``-``port_b``.

        Assignments sharing a port with the new pair are not crossings; port
        ownership is handled separately.
        """
        if not region.assignments:
            return []
        network_id = self.current_connection.network_id if self.current_connection else None
        new_start = (port_a.x, port_a.y)
        new_end = (port_b.x, port_b.y)

        crossing = []
        for assignment in region.assignments:
            if assignment.connection.network_id == network_id:
                continue
            existing1 = assignment.region_port1
            existing2 = assignment.region_port2
            if existing1 in (port_a, port_b) or existing2 in (port_a, port_b):
                continue
            if do_segments_intersect(new_start, new_end, (existing1.x, existing1.y), (existing2.x, existing2.y)):
                crossing.append(assignment)
        return crossing

    def select_candidates_for_entering_region(self, candidates: List[Candidate]) -> List[Candidate]:
        connection = self.current_connection
        filtered = filter_obstacle_candidates(
            candidates,
            connection.start_region if connection else None,
            connection.end_region if connection else None,
        )
        if self.use_center_first_selection:
            return select_center_first_candidates(filtered, connection.network_id if connection else None)
        return cap_candidates_by_cost(filtered, self.max_candidates_per_region)

    def route_solved_hook(self, solved_route: SolvedRoute):
        if not solved_route.required_rip:
            return
        if len(self.unprocessed_connections) < 2:
            return
        next_connection = self.unprocessed_connections.pop(0)
        self.unprocessed_connections.append(next_connection)

    def get_remaining_rip_budget(self) -> Optional[int]:
        return self.rip_budget.remaining()

    def rip_route(self, route: SolvedRoute):
        super().rip_route(route)
        self.rip_budget.total_rips = self.total_rip_count

    # ------------------------------------------------------------------
    # Congestion
    # ------------------------------------------------------------------

    @staticmethod
    def _assigned(port: Port, connection_name: str, network_id: str) -> AssignedPortPoint:
        return AssignedPortPoint(
            x=port.x, y=port.y, z=port.z,
            connection_name=connection_name,
            root_connection_name=network_id,
            port_point_id=port.port_id,
        )

    def _get_region_port_points(self, region: Region, new_route: SolvedRoute,
                                routes_to_rip: Set[SolvedRoute]) -> List[AssignedPortPoint]:
        points = []
        for assignment in region.assignments:
            if assignment.solved_route in routes_to_rip:
                continue
            name = assignment.connection.connection_id
            network_id = assignment.connection.network_id
            points.append(self._assigned(assignment.region_port1, name, network_id))
            points.append(self._assigned(assignment.region_port2, name, network_id))

        name = new_route.connection.connection_id
        network_id = new_route.connection.network_id
        for candidate in new_route.path:
            if candidate.last_port is None or candidate.last_region is not region:
                continue
            points.append(self._assigned(candidate.last_port, name, network_id))
            points.append(self._assigned(candidate.port, name, network_id))
        return points

    def compute_region_pf(self, region: Region, new_route: SolvedRoute,
                          routes_to_rip: Set[SolvedRoute]) -> float:
        """pf of ``region`` with the new route placed and ``routes_to_rip`` removed."""
        node = region.node
        if node.contains_target:
            return 0.0
        port_points = self._get_region_port_points(region, new_route, routes_to_rip)
        crossings = get_intra_node_crossings(node.center, port_points)
        return calculate_node_probability_of_failure(node.width, crossings, node.available_z)

    def get_rip_seed(self) -> int:
        return self.iterations + len(self.solved_routes) + self.total_rip_count

    def compute_routes_to_rip(self, solved_route: SolvedRoute) -> Set[SolvedRoute]:
        mandatory = self.compute_port_overlap_routes(solved_route)

        def region_pf(region: Region, marked: Set[SolvedRoute]) -> float:
            return self.compute_region_pf(region, solved_route, marked)

        if self.ripping_enabled:
            rng = np.random.default_rng(self.get_rip_seed())
            decision = self.rip_policy.decide(solved_route, mandatory, self.solved_routes, region_pf, rng)
        else:
            decision = RipDecision(routes=set(mandatory), mandatory=set(mandatory))
            for region in solved_route.get_traversed_regions():
                decision.region_pfs[region.region_id] = region_pf(region, decision.routes)

        for region_id, pf in decision.region_pfs.items():
            self.congestion_memory.update(region_id, pf)

        self.last_rip_decision = decision
        if decision.routes:
            ripped = tuple(sorted(route.connection.connection_id for route in decision.routes))
            self.rip_history.append((solved_route.connection.connection_id, ripped))
            rip_logger = self.solver_logger.bind(connection=solved_route.connection.connection_id)
            rip_logger.info(f"[RIP] Ripping {len(ripped)} route(s): {', '.join(ripped)}")
        return decision.routes

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _step(self):
        super()._step()
        if self.solved:
            self.build_assignments_if_solved()
            self._apply_board_score_guardrail()

    def build_assignments_if_solved(self):
        if not self.solved or self.assignments_built:
            return
        assignments = build_port_point_assignments(
            self.solved_routes, self.connections_with_results, self.nodes,
        )
        self.connections_with_results = assignments.connections_with_results
        self.assigned_port_points = assignments.assigned_port_points
        self.node_assigned_port_points = assignments.node_assigned_port_points
        self.assignments_built = True

    def _apply_board_score_guardrail(self):
        if self.guardrail_checked or not self.assignments_built:
            return
        self.guardrail_checked = True
        score = self.compute_board_score()
        self.board_score = score
        if score < self.min_allowed_board_score:
            self.solved = False
            self.fail(f"Board score {score:.4f} is below the minimum allowed board score "
                      f"{self.min_allowed_board_score}")
            self.solver_logger.warning(f"[GUARDRAIL] {self.error}")
        else:
            self.solver_logger.info(f"[GUARDRAIL] Board score {score:.4f} accepted "
                        f"(minimum {self.min_allowed_board_score})")

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def get_nodes_with_port_points(self) -> List[NodeWithPortPoints]:
        nodes_with_port_points = []
        for node in self.nodes:
            port_points = self.node_assigned_port_points.get(node.node_id, [])
            if not port_points:
                continue
            nodes_with_port_points.append(NodeWithPortPoints.from_node(node, port_points))
        return nodes_with_port_points

    def compute_node_pf(self, node: Union[CapacityNode, NodeWithPortPoints]) -> float:
        port_points = self.node_assigned_port_points.get(node.node_id)
        if not port_points:
            return 0.0
        source = self.node_map.get(node.node_id)
        contains_target = source.contains_target if source is not None else node.contains_target
        crossings = get_intra_node_crossings(node.center, port_points)
        return calculate_node_probability_of_failure(node.width, crossings, node.available_z, contains_target)

    def compute_board_score(self) -> float:
        return board_score.compute_board_score(self.get_nodes_with_port_points())

    def get_output(self) -> List[ConnectionResult]:
        return self.connections_with_results

    def get_statistics(self) -> Dict[str, Any]:
        stats = super().get_statistics()
        stats.update({
            "connections": len(self.connections),
            "solved_routes": len(self.solved_routes),
            "total_rips": self.total_rip_count,
            "region_rips": {k: v for k, v in self.rip_budget.region_rips.items() if v},
            "board_score": self.board_score,
        })
        return stats

    def _visualize(self) -> Dict[str, Any]:
        return visualize_pathing_solver(self)
