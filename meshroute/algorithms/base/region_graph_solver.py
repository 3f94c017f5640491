"""Best-first search over a region/port graph with rip-up support.

Connections are routed one at a time. Each step pops the cheapest candidate
from the frontier and either completes the current connection or expands the
candidate into the ports of the region it enters. Completing a route may rip
earlier routes; ripped connections go back to the unprocessed queue.

Subclasses shape the search through the hook methods:
``compute_h``, ``compute_increased_region_cost_if_ports_are_used``,
``get_port_usage_penalty``, ``get_rips_required_for_port_usage``,
``select_candidates_for_entering_region``, ``route_solved_hook`` and
``compute_routes_to_rip``.
"""
import heapq
import itertools
import logging
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from ...domain.models.geometry import distance
from ...domain.models.graph import (
    Assignment, Candidate, Connection, Port, PortAssignment, Region, SolvedRoute
)
from .solver import BaseSolver

logger = logging.getLogger(__name__)


class RegionGraphSolver(BaseSolver):
    """Routes connections through regions joined by ports."""

    def __init__(self, regions: Sequence[Region], ports: Sequence[Port],
                 connections: Sequence[Connection],
                 greedy_multiplier: float = 1.0,
                 ripping_enabled: bool = False,
                 rip_cost: float = 100.0):
        super().__init__()
        self.regions = list(regions)
        self.ports = list(ports)
        self.connections = list(connections)
        self.greedy_multiplier = greedy_multiplier
        self.ripping_enabled = ripping_enabled
        self.rip_cost = rip_cost

        self.unprocessed_connections: List[Connection] = list(connections)
        self.solved_routes: List[SolvedRoute] = []
        self.current_connection: Optional[Connection] = None
        self.current_end_region: Optional[Region] = None
        self.candidate_queue: List[Tuple[float, int, Candidate]] = []
        self.visited: Set[Tuple[int, int]] = set()
        self.total_rip_count = 0
        self._sequence = itertools.count()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def compute_h(self, candidate: Candidate) -> float:
        """Heuristic cost from a candidate to the current end region."""
        if self.current_end_region is None:
            return 0.0
        center = self.current_end_region.center
        return distance(candidate.port.x, candidate.port.y, center.x, center.y)

    def compute_increased_region_cost_if_ports_are_used(self, region: Region,
                                                        port_a: Port, port_b: Port) -> float:
        return distance(port_a.x, port_a.y, port_b.x, port_b.y)

    def get_port_usage_penalty(self, port: Port) -> float:
        return 0.0

    def get_rips_required_for_port_usage(self, region: Region,
                                         port_a: Port, port_b: Port) -> List[Assignment]:
        """Assignments in ``region`` that conflict with using the port pair.

        By default an assignment conflicts when it uses one of the two ports
        and belongs to another network.
        """
        network_id = self.current_connection.network_id if self.current_connection else None
        return [
            assignment for assignment in region.assignments
            if assignment.connection.network_id != network_id
            and (assignment.region_port1 in (port_a, port_b)
                 or assignment.region_port2 in (port_a, port_b))
        ]

    def select_candidates_for_entering_region(self, candidates: List[Candidate]) -> List[Candidate]:
        return candidates

    def route_solved_hook(self, solved_route: SolvedRoute):
        pass

    def compute_routes_to_rip(self, solved_route: SolvedRoute) -> Set[SolvedRoute]:
        return self.compute_port_overlap_routes(solved_route)

    def get_remaining_rip_budget(self) -> Optional[int]:
        """How many more routes may be ripped, or None for no limit."""
        return None

    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------

    def _get_port_owner_conflicts(self, port: Port) -> List[SolvedRoute]:
        if self.current_connection is None:
            return []
        return port.get_routes_outside_network(self.current_connection.network_id)

    def compute_port_overlap_routes(self, solved_route: SolvedRoute) -> Set[SolvedRoute]:
        """Routes that hold a port of ``solved_route`` or cross it inside a region.

        Routes on the same network are never included.
        """
        network_id = solved_route.connection.network_id
        overlapping = set()
        for candidate in solved_route.path:
            overlapping.update(candidate.port.get_routes_outside_network(network_id))
            if candidate.last_port is None:
                continue
            for conflict in self.get_rips_required_for_port_usage(
                    candidate.last_region, candidate.last_port, candidate.port):
                if conflict.connection.network_id != network_id:
                    overlapping.add(conflict.solved_route)
        overlapping.discard(solved_route)
        return overlapping

    def _collect_rips(self, parent_rips: FrozenSet[SolvedRoute], port: Port,
                      region: Optional[Region], last_port: Optional[Port]) -> FrozenSet[SolvedRoute]:
        new_rips = set(self._get_port_owner_conflicts(port))
        if region is not None and last_port is not None:
            for assignment in self.get_rips_required_for_port_usage(region, last_port, port):
                new_rips.add(assignment.solved_route)
        if not new_rips:
            return parent_rips
        return parent_rips | frozenset(new_rips)

    def _admit_rips(self, candidate: Candidate, parent_rips: FrozenSet[SolvedRoute]) -> bool:
        """Apply rip admission rules; adds the rip cost when new rips are needed."""
        if len(candidate.routes_to_rip) == len(parent_rips):
            return True
        if not self.ripping_enabled:
            return False
        budget = self.get_remaining_rip_budget()
        if budget is not None and len(candidate.routes_to_rip) > budget:
            return False
        candidate.g += self.rip_cost
        return True

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _push(self, candidate: Candidate):
        heapq.heappush(self.candidate_queue, (candidate.f, next(self._sequence), candidate))

    def _finish_candidate(self, candidate: Candidate) -> Candidate:
        candidate.h = self.compute_h(candidate)
        candidate.f = candidate.g + candidate.h * self.greedy_multiplier
        return candidate

    def begin_connection(self, connection: Connection):
        self.current_connection = connection
        self.current_end_region = connection.end_region
        self.candidate_queue = []
        self.visited = set()

        if connection.start_region is connection.end_region:
            self.process_solved_route(None)
            return

        start = connection.start_region
        seeds = []
        for port in start.ports:
            next_region = port.other_region(start)
            candidate = Candidate(
                port=port, g=self.get_port_usage_penalty(port), h=0.0, f=0.0,
                last_region=start, next_region=next_region,
            )
            candidate.routes_to_rip = self._collect_rips(frozenset(), port, None, None)
            if not self._admit_rips(candidate, frozenset()):
                continue
            seeds.append(self._finish_candidate(candidate))

        for candidate in self.select_candidates_for_entering_region(seeds):
            self._push(candidate)

        logger.debug(f"[SEARCH] Connection {connection.connection_id}: "
                     f"{len(self.candidate_queue)} seed candidates")

    def expand_candidate(self, parent: Candidate):
        region = parent.next_region
        next_candidates = []
        for port in region.ports:
            if port is parent.port:
                continue
            next_region = port.other_region(region)
            if (id(port), id(next_region)) in self.visited:
                continue
            g = (parent.g +
                 self.compute_increased_region_cost_if_ports_are_used(region, parent.port, port) +
                 self.get_port_usage_penalty(port))
            candidate = Candidate(
                port=port, g=g, h=0.0, f=0.0,
                last_region=region, next_region=next_region,
                parent=parent, last_port=parent.port,
            )
            candidate.routes_to_rip = self._collect_rips(parent.routes_to_rip, port, region, parent.port)
            if not self._admit_rips(candidate, parent.routes_to_rip):
                continue
            next_candidates.append(self._finish_candidate(candidate))

        for candidate in self.select_candidates_for_entering_region(next_candidates):
            self._push(candidate)

    def _step(self):
        if self.current_connection is None:
            if not self.unprocessed_connections:
                self.solved = True
                return
            self.begin_connection(self.unprocessed_connections.pop(0))
            return

        if not self.candidate_queue:
            self.fail(f"Ran out of candidates on connection {self.current_connection.connection_id}")
            return

        _, _, candidate = heapq.heappop(self.candidate_queue)
        key = (id(candidate.port), id(candidate.next_region))
        if key in self.visited:
            return
        self.visited.add(key)

        if candidate.next_region is self.current_end_region:
            self.process_solved_route(candidate)
            return

        self.expand_candidate(candidate)

    # ------------------------------------------------------------------
    # Route bookkeeping
    # ------------------------------------------------------------------

    def rip_route(self, route: SolvedRoute):
        """Remove a solved route from the graph and requeue its connection."""
        touched = []
        for candidate in route.path:
            port = candidate.port
            if port.release(route):
                port.rip_count += 1
            if candidate.last_port is not None and candidate.last_region not in touched:
                touched.append(candidate.last_region)
        for region in touched:
            region.assignments = [a for a in region.assignments if a.solved_route is not route]

        if route in self.solved_routes:
            self.solved_routes.remove(route)
        self.unprocessed_connections.append(route.connection)
        self.total_rip_count += 1
        self.solver_logger.bind(connection=route.connection.connection_id).debug(
            f"[RIP] Ripped (total rips {self.total_rip_count})")

    def process_solved_route(self, final_candidate: Optional[Candidate]):
        connection = self.current_connection
        path = final_candidate.get_path() if final_candidate is not None else []
        route = SolvedRoute(connection=connection, path=path)

        routes_to_rip = self.compute_routes_to_rip(route)
        # Stable order so requeued connections do not depend on set iteration
        for ripped in sorted(routes_to_rip, key=lambda r: r.connection.connection_id):
            self.rip_route(ripped)
        route.required_rip = bool(routes_to_rip)

        for candidate in path:
            candidate.port.add_assignment(PortAssignment(solved_route=route, connection=connection))
            if candidate.last_port is not None:
                candidate.last_region.assignments.append(Assignment(
                    region_port1=candidate.last_port,
                    region_port2=candidate.port,
                    region=candidate.last_region,
                    connection=connection,
                    solved_route=route,
                ))

        self.solved_routes.append(route)
        self.current_connection = None
        self.current_end_region = None
        self.candidate_queue = []
        self.route_solved_hook(route)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def get_cost(self) -> float:
        return sum(route.cost for route in self.solved_routes)

    def get_output(self) -> List[SolvedRoute]:
        return list(self.solved_routes)

    def _visualize(self) -> Dict[str, Any]:
        rects = [{
            "center": (region.center.x, region.center.y),
            "width": region.width,
            "height": region.height,
            "fill": "rgba(255,0,0,0.15)" if region.contains_obstacle else "rgba(0,0,255,0.05)",
            "label": region.region_id,
        } for region in self.regions]
        points = [{
            "x": port.x, "y": port.y,
            "color": "red" if port.assignment is not None else "gray",
            "label": port.port_id,
        } for port in self.ports]
        lines = []
        for route in self.solved_routes:
            coords = [(candidate.port.x, candidate.port.y) for candidate in route.path]
            if len(coords) >= 2:
                lines.append({"points": coords, "label": route.connection.connection_id})
        return {"points": points, "lines": lines, "rects": rects,
                "title": f"{self.get_solver_name()} ({len(self.solved_routes)} routes)"}
