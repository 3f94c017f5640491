"""
Cramped Port Filter Tests for meshroute
Unit tests for the bounded-depth exploration around obstacle targets
"""

import pytest

from meshroute.algorithms.cramped import (
    MultiTargetNecessaryCrampedPortPointSolver, SingleTargetNecessaryCrampedPortPointSolver
)


def port_ids(node):
    return sorted(port.port_point_id for port in node.port_points)


@pytest.fixture
def reachable_target(mesh_builder):
    """An obstacle target reachable without its cramped port."""
    b = mesh_builder
    b.node("T", 1.0, 1.0, contains_obstacle=True)
    b.node("N1", 3.0, 1.0)
    b.node("N2", 5.0, 1.0)
    b.node("N3", 1.0, 3.0)
    b.link("p1", 2.0, 1.0, "T", "N1")
    b.link("p2", 4.0, 1.0, "N1", "N2")
    b.link("c1", 1.0, 2.0, "T", "N3", cramped=True)
    connections = [b.connection("A", (1.0, 1.0), (5.0, 1.0))]
    return b, connections


@pytest.fixture
def cramped_only_target(mesh_builder):
    """An obstacle target whose only way out is a cramped port."""
    b = mesh_builder
    b.node("T", 1.0, 1.0, contains_obstacle=True)
    b.node("N1", 3.0, 1.0)
    b.node("N2", 5.0, 1.0)
    b.node("N3", 7.0, 1.0)
    b.link("c1", 2.0, 1.0, "T", "N1", cramped=True)
    b.link("p3", 4.0, 1.0, "N1", "N2")
    b.link("c9", 6.0, 1.0, "N2", "N3", cramped=True)
    connections = [b.connection("A", (1.0, 1.0), (7.0, 1.0))]
    return b, connections


class TestSingleTarget:
    """Test the per-target breadth-first search"""

    def test_collects_ports_at_depth_limit(self, reachable_target):
        b, _ = reachable_target
        node_port_points = {node.node_id: node.port_points for node in b.nodes}
        solver = SingleTargetNecessaryCrampedPortPointSolver(
            target=b.node_map["T"], node_port_points=node_port_points, node_map=b.node_map,
        )
        solver.solve()

        assert solver.solved
        assert [e.port.port_point_id for e in solver.get_output()] == ["p2"]
        assert solver.get_output()[0].depth == 2
        assert [p.port_point_id for p in solver.get_output()[0].get_path_ports()] == ["p1", "p2"]

    def test_cramped_ports_cost_more(self, cramped_only_target):
        b, _ = cramped_only_target
        node_port_points = {node.node_id: node.port_points for node in b.nodes}
        solver = SingleTargetNecessaryCrampedPortPointSolver(
            target=b.node_map["T"], node_port_points=node_port_points, node_map=b.node_map,
            ignore_cramped=False,
        )
        solver.solve()

        explored = solver.get_output()
        assert [e.port.port_point_id for e in explored] == ["p3"]
        assert explored[0].cramped_count == 1
        assert explored[0].cost == 1002

    def test_depth_limit_must_be_positive(self, reachable_target):
        b, _ = reachable_target
        with pytest.raises(ValueError):
            SingleTargetNecessaryCrampedPortPointSolver(
                target=b.node_map["T"], node_port_points={}, node_map=b.node_map, depth_limit=0,
            )


class TestMultiTarget:
    """Test which cramped port points survive the filter"""

    def test_unneeded_cramped_port_is_removed(self, reachable_target):
        b, connections = reachable_target
        solver = MultiTargetNecessaryCrampedPortPointSolver(b.nodes, connections)
        solver.solve()

        assert solver.solved
        output = {node.node_id: node for node in solver.get_output()}
        assert port_ids(output["T"]) == ["p1"]
        assert port_ids(output["N3"]) == []
        assert solver.cramped_to_keep == set()

    def test_needed_cramped_port_is_kept(self, cramped_only_target):
        b, connections = cramped_only_target
        solver = MultiTargetNecessaryCrampedPortPointSolver(b.nodes, connections)
        solver.solve()

        assert solver.solved
        assert solver.cramped_to_keep == {"c1"}
        output = {node.node_id: node for node in solver.get_output()}
        assert port_ids(output["T"]) == ["c1"]
        assert port_ids(output["N2"]) == ["p3"]

    def test_input_nodes_are_not_modified(self, reachable_target):
        b, connections = reachable_target
        solver = MultiTargetNecessaryCrampedPortPointSolver(b.nodes, connections)
        solver.solve()
        solver.get_output()

        assert port_ids(b.node_map["T"]) == ["c1", "p1"]

    def test_no_obstacle_targets_keeps_everything(self, mesh_builder):
        mesh_builder.node("A", 1.0, 1.0)
        mesh_builder.node("B", 3.0, 1.0)
        mesh_builder.link("c", 2.0, 1.0, "A", "B", cramped=True)
        connections = [mesh_builder.connection("X", (1.0, 1.0), (3.0, 1.0))]

        solver = MultiTargetNecessaryCrampedPortPointSolver(mesh_builder.nodes, connections)
        solver.solve()

        assert solver.solved
        assert solver.targets == []
        # Without targets nothing is known to need the cramped port
        assert all(port_ids(node) == [] for node in solver.get_output())

    def test_unreachable_target_warns(self, mesh_builder):
        mesh_builder.node("T", 1.0, 1.0, contains_obstacle=True)
        mesh_builder.node("O", 3.0, 1.0, contains_obstacle=True)
        mesh_builder.link("to", 2.0, 1.0, "T", "O")
        connections = [mesh_builder.connection("X", (1.0, 1.0), (3.0, 1.0))]

        solver = MultiTargetNecessaryCrampedPortPointSolver(mesh_builder.nodes, connections)
        solver.solve()

        assert solver.solved
        assert len(solver.warnings) == 2
        assert "T" in solver.warnings[0]

    def test_targets_processed_left_to_right(self, mesh_builder):
        mesh_builder.node("right", 9.0, 1.0, contains_obstacle=True)
        mesh_builder.node("left", 1.0, 1.0, contains_obstacle=True)
        connections = [mesh_builder.connection("X", (1.0, 1.0), (9.0, 1.0))]

        solver = MultiTargetNecessaryCrampedPortPointSolver(mesh_builder.nodes, connections)
        solver.setup()
        assert [node.node_id for node in solver.unprocessed_targets] == ["left", "right"]

    def test_unknown_node_fails(self, mesh_builder):
        mesh_builder.node("T", 1.0, 1.0, contains_obstacle=True)
        mesh_builder.link("dangling", 2.0, 1.0, "T", "ghost")
        connections = [mesh_builder.connection("X", (1.0, 1.0), (3.0, 1.0))]

        solver = MultiTargetNecessaryCrampedPortPointSolver(mesh_builder.nodes, connections)
        solver.solve()

        assert solver.failed
        assert "ghost" in solver.error
