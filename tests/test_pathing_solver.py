"""
Port Point Pathing Tests for meshroute
End-to-end tests for congestion-aware pathing with rip-up, assignment build
and the board score guardrail
"""

import pytest

from meshroute.algorithms.portpoint import PortPointPathingSolver, build_port_point_assignments
from meshroute.shared.configuration import PathingSettings
from meshroute.shared.exceptions import ConfigurationError, MeshStructureError


def shared_ports_across_networks(solver):
    """(region, port) pairs used by assignments from more than one network."""
    shared = []
    for region in solver.regions:
        networks_by_port = {}
        for assignment in region.assignments:
            for port in (assignment.region_port1, assignment.region_port2):
                networks_by_port.setdefault(port.port_id, set()).add(assignment.connection.network_id)
        for port_id, networks in networks_by_port.items():
            if len(networks) > 1:
                shared.append((region.region_id, port_id, networks))
    for port in solver.ports:
        networks = {a.connection.network_id for a in port.assignments}
        if len(networks) > 1:
            shared.append(("*", port.port_id, networks))
    return shared


def route_ports(solver, name):
    for route in solver.solved_routes:
        if route.connection.connection_id == name:
            return [candidate.port.port_id for candidate in route.path]
    return None


@pytest.fixture
def corridor_pair(corridor_mesh):
    """Two different nets that both need the only corridor."""
    connections = [
        corridor_mesh.connection("A", (0.5, 1.0), (5.5, 1.0)),
        corridor_mesh.connection("B", (1.0, 1.5), (5.0, 1.5)),
    ]
    return corridor_mesh.nodes, connections


class TestContention:
    """Test ripping an earlier route to make room for a later one"""

    def test_both_nets_routed_after_rip(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        assert solver.solved, solver.error
        assert route_ports(solver, "B") == ["b1", "e1"]
        assert route_ports(solver, "A") == ["a2", "e2"]
        assert solver.total_rip_count == 1

    def test_ripping_route_is_flagged(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        flags = {route.connection.connection_id: route.required_rip for route in solver.solved_routes}
        assert flags == {"A": False, "B": True}
        assert solver.rip_history == [("B", ("A",))]

    def test_no_port_shared_between_networks(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        ports_by_network = {}
        for route in solver.solved_routes:
            ports = ports_by_network.setdefault(route.connection.network_id, set())
            ports.update(candidate.port.port_id for candidate in route.path)
        a_ports, b_ports = ports_by_network.values()
        assert not a_ports & b_ports

        for port_id, owner in solver.assigned_port_points.items():
            assert port_id in (a_ports | b_ports)
            assert owner.connection_name in ("A", "B")

    def test_shared_network_port_is_never_handed_to_another_network(self, contention_mesh, mesh_builder):
        """Test that a port used by two routes of one net is cleared of both before reuse"""
        nodes, _ = contention_mesh
        connections = [
            mesh_builder.connection("A1", (1.0, 2.5), (5.0, 2.5)),
            mesh_builder.connection("A2", (1.0, 3.0), (5.0, 3.0), root_connection_name="A1"),
            mesh_builder.connection("C", (3.0, 5.0), (5.0, 3.5)),
        ]
        solver = PortPointPathingSolver(nodes, connections)

        while not (solver.solved or solver.failed):
            solver.step()
            assert shared_ports_across_networks(solver) == []

        assert solver.solved, solver.error
        assert route_ports(solver, "C") == ["b1", "e1"]
        assert route_ports(solver, "A1") == route_ports(solver, "A2") == ["a2", "e2"]
        assert solver.rip_history == [("C", ("A1", "A2"))]
        assert solver.total_rip_count == 2

    def test_deterministic(self, contention_mesh):
        """Test that identical inputs give identical routes and rips"""
        nodes, connections = contention_mesh
        runs = []
        for _ in range(2):
            solver = PortPointPathingSolver(nodes, connections)
            solver.solve()
            runs.append((
                [(route.connection.connection_id, route_ports(solver, route.connection.connection_id))
                 for route in solver.solved_routes],
                solver.rip_history,
                solver.iterations,
            ))
        assert runs[0] == runs[1]

    def test_center_first_selection_also_solves(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections, use_center_first_selection=True)
        solver.solve()
        assert solver.solved, solver.error

    def test_congestion_memory_is_recorded(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        assert "M1" in solver.congestion_memory
        assert "M2" in solver.congestion_memory
        assert solver.last_rip_decision is not None


class TestRipLimits:
    """Test ripping switches and budgets"""

    def test_ripping_disabled_fails_on_conflict(self, corridor_pair):
        nodes, connections = corridor_pair
        solver = PortPointPathingSolver(nodes, connections, ripping_enabled=False)
        solver.solve()

        assert solver.failed
        assert solver.error == "Ran out of candidates on connection B"
        assert solver.total_rip_count == 0

    def test_rip_budget_is_never_exceeded(self, corridor_pair):
        """Test that two nets fighting over one corridor stop at the rip budget"""
        nodes, connections = corridor_pair
        solver = PortPointPathingSolver(nodes, connections, max_rips=3)
        solver.solve()

        assert solver.failed
        assert solver.error.startswith("Ran out of candidates on connection")
        assert solver.total_rip_count == 3
        assert solver.rip_budget.remaining() == 0

    def test_same_network_shares_corridor(self, corridor_mesh):
        connections = [
            corridor_mesh.connection("A", (0.5, 1.0), (5.5, 1.0)),
            corridor_mesh.connection("B", (1.0, 1.5), (5.0, 1.5), root_connection_name="A"),
        ]
        solver = PortPointPathingSolver(corridor_mesh.nodes, connections)
        solver.solve()

        assert solver.solved, solver.error
        assert solver.total_rip_count == 0
        assert route_ports(solver, "A") == route_ports(solver, "B") == ["pLM", "pMR"]

    def test_iteration_ceiling(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections, max_iterations=3)
        solver.solve()

        assert solver.failed
        assert solver.error == "PortPointPathingSolver ran out of iterations (MAX_ITERATIONS=3)"


class TestObstacles:

    def test_obstacle_between_endpoints_fails(self, mesh_builder):
        mesh_builder.node("L", 1.0, 1.0, contains_target=True)
        mesh_builder.node("O", 3.0, 1.0, contains_obstacle=True)
        mesh_builder.node("R", 5.0, 1.0, contains_target=True)
        mesh_builder.link("lo", 2.0, 1.0, "L", "O")
        mesh_builder.link("or", 4.0, 1.0, "O", "R")
        connections = [mesh_builder.connection("A", (0.5, 1.0), (5.5, 1.0))]

        solver = PortPointPathingSolver(mesh_builder.nodes, connections)
        solver.solve()

        assert solver.failed
        assert solver.error == "Ran out of candidates on connection A"

    def test_malformed_mesh_raises(self, mesh_builder):
        mesh_builder.node("L", 1.0, 1.0)
        mesh_builder.link("dangling", 2.0, 1.0, "L", "ghost")
        connections = [mesh_builder.connection("A", (0.5, 1.0), (1.5, 1.0))]

        with pytest.raises(MeshStructureError):
            PortPointPathingSolver(mesh_builder.nodes, connections)


class TestGuardrail:
    """Test the minimum board score check"""

    def test_board_score_accepted(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections, min_allowed_board_score=float("-inf"))
        solver.solve()

        assert solver.solved
        assert solver.guardrail_checked
        assert solver.board_score == pytest.approx(0.0)

    def test_board_score_rejected(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections, min_allowed_board_score=float("inf"))
        solver.solve()

        assert solver.failed
        assert not solver.solved
        assert "below the minimum allowed board score" in solver.error
        # Routes and assignments stay available for inspection
        assert len(solver.solved_routes) == 2
        assert solver.assignments_built

    def test_guardrail_runs_once(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections, min_allowed_board_score=float("inf"))
        solver.solve()
        error = solver.error
        solver.step()
        assert solver.error == error


class TestOutputs:
    """Test assignments, node outputs and statistics"""

    def test_connection_paths(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        results = {result.name: result for result in solver.get_output()}
        path = results["A"].path
        assert [point.as_tuple() for point in path] == [
            (1.0, 2.5, 0), (2.0, 0.5, 0), (4.0, 0.5, 0), (5.0, 2.5, 0),
        ]
        assert path[0].is_endpoint and path[-1].is_endpoint
        assert [point.node_id for point in path] == ["SA", "M2", "E", "E"]
        distances = [point.distance_traveled for point in path]
        assert distances == sorted(distances)
        assert [p.port_point_id for p in results["A"].port_points] == ["a2", "e2"]

    def test_nodes_with_port_points(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        by_id = {node.node_id: node for node in solver.get_nodes_with_port_points()}
        assert set(by_id) == {"SA", "M1", "M2", "E", "SB"}
        # Two port crossings plus two endpoints per net in the shared end node
        assert len(by_id["E"].port_points) == 4
        assert {p.connection_name for p in by_id["M1"].port_points} == {"B"}
        assert solver.compute_node_pf(by_id["M1"]) == 0.0

    def test_assignment_build_is_pure_and_repeatable(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        inputs = solver.connections_with_results
        before = [result.path for result in inputs]
        first = build_port_point_assignments(solver.solved_routes, inputs, solver.nodes)
        second = build_port_point_assignments(solver.solved_routes, inputs, solver.nodes)

        assert [result.path for result in inputs] == before
        assert all(a is b for a, b in zip((result.path for result in inputs), before))
        assert first.node_assigned_port_points == second.node_assigned_port_points
        assert first.assigned_port_points == second.assigned_port_points
        assert [r.path for r in first.connections_with_results] == [r.path for r in second.connections_with_results]

    def test_same_node_connection(self, corridor_mesh):
        connections = [corridor_mesh.connection("local", (0.5, 0.5), (1.5, 1.5))]
        solver = PortPointPathingSolver(corridor_mesh.nodes, connections)
        solver.solve()

        assert solver.solved
        path = solver.get_output()[0].path
        assert len(path) == 2
        assert all(point.is_endpoint for point in path)

    def test_statistics(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        solver.solve()

        stats = solver.get_statistics()
        assert stats["connections"] == 2
        assert stats["solved_routes"] == 2
        assert stats["total_rips"] == 1
        assert stats["board_score"] == pytest.approx(0.0)

    def test_visualize_mid_solve_is_read_only(self, contention_mesh):
        nodes, connections = contention_mesh
        solver = PortPointPathingSolver(nodes, connections)
        # Begin net A and expand its first candidate
        for _ in range(2):
            solver.step()
        iterations = solver.iterations
        queue = list(solver.candidate_queue)
        assert queue

        graphics = solver.visualize()
        assert len(graphics["rects"]) == 5
        assert any(line.get("strokeDash") for line in graphics["lines"])
        assert graphics["title"].startswith("PortPointPathingSolver")
        assert solver.iterations == iterations
        assert solver.candidate_queue == queue


class TestSettings:

    def test_unknown_override_raises(self, contention_mesh):
        nodes, connections = contention_mesh
        with pytest.raises(ConfigurationError):
            PortPointPathingSolver(nodes, connections, not_a_setting=1)

    def test_invalid_override_raises(self, contention_mesh):
        nodes, connections = contention_mesh
        with pytest.raises(ConfigurationError):
            PortPointPathingSolver(nodes, connections, greedy_multiplier=-1.0)

    def test_settings_object_is_not_mutated(self, contention_mesh):
        nodes, connections = contention_mesh
        settings = PathingSettings(rip_cost=4.0)
        solver = PortPointPathingSolver(nodes, connections, settings=settings, rip_cost=6.0)

        assert solver.rip_cost == 6.0
        assert settings.rip_cost == 4.0
