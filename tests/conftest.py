"""Test configuration and fixtures for meshroute."""
import pytest

from meshroute.algorithms.base.solver import BaseSolver
from meshroute.domain.models import (
    CapacityNode, ConnectionPoint, ConnectionSpec, Coordinate, PortPoint
)


class MeshBuilder:
    """Assemble small capacity meshes by hand."""

    def __init__(self):
        self.nodes = []
        self.node_map = {}

    def node(self, node_id, cx, cy, width=2.0, height=2.0, **kwargs):
        node = CapacityNode(node_id=node_id, center=Coordinate(cx, cy), width=width, height=height, **kwargs)
        self.nodes.append(node)
        self.node_map[node_id] = node
        return node

    def link(self, port_id, x, y, node_a, node_b, z=0, cramped=False):
        """Add a port point joining two nodes and list it on both."""
        port = PortPoint(port_point_id=port_id, x=x, y=y, z=z,
                         connection_node_ids=(node_a, node_b), cramped=cramped)
        for node_id in (node_a, node_b):
            if node_id in self.node_map:
                self.node_map[node_id].port_points.append(port)
        return port

    @staticmethod
    def connection(name, start, end, layer="top", **kwargs):
        return ConnectionSpec(
            name=name,
            points_to_connect=[
                ConnectionPoint(x=start[0], y=start[1], layer=layer),
                ConnectionPoint(x=end[0], y=end[1], layer=layer),
            ],
            **kwargs
        )


@pytest.fixture
def mesh_builder():
    """Empty mesh builder."""
    return MeshBuilder()


@pytest.fixture
def corridor_mesh(mesh_builder):
    """Three nodes in a row joined by a single port on each shared edge.

    L and R hold connection targets.
    """
    mesh_builder.node("L", 1.0, 1.0, contains_target=True)
    mesh_builder.node("M", 3.0, 1.0)
    mesh_builder.node("R", 5.0, 1.0, contains_target=True)
    mesh_builder.link("pLM", 2.0, 1.0, "L", "M")
    mesh_builder.link("pMR", 4.0, 1.0, "M", "R")
    return mesh_builder


@pytest.fixture
def contention_mesh(mesh_builder):
    """Two nets competing for the port between M1 and E.

    Net A (SA -> E) prefers the upper path through M1 but can detour through
    M2. Net B (SB -> E) can only reach E through M1 and port e1.
    """
    b = mesh_builder
    b.node("SA", 1.0, 2.0, width=2.0, height=4.0, contains_target=True)
    b.node("M1", 3.0, 3.0)
    b.node("M2", 3.0, 1.0)
    b.node("E", 5.0, 2.0, width=2.0, height=4.0, contains_target=True)
    b.node("SB", 3.0, 5.0, contains_target=True)
    b.link("a1", 2.0, 3.0, "SA", "M1")
    b.link("a2", 2.0, 0.5, "SA", "M2")
    b.link("e1", 4.0, 3.0, "M1", "E")
    b.link("e2", 4.0, 0.5, "M2", "E")
    b.link("b1", 3.0, 4.0, "SB", "M1")
    connections = [
        b.connection("A", (1.0, 2.5), (5.0, 2.5)),
        b.connection("B", (3.0, 5.0), (5.0, 3.5)),
    ]
    return b.nodes, connections


class CountingSolver(BaseSolver):
    """Solves after a fixed number of steps."""

    def __init__(self, steps_needed=3, cost=1.0):
        super().__init__()
        self.steps_needed = steps_needed
        self.cost = cost
        self.count = 0

    def _step(self):
        self.count += 1
        if self.count >= self.steps_needed:
            self.solved = True

    def get_cost(self):
        return self.cost

    def _visualize(self):
        return {"points": [{"x": self.count, "y": 0}], "lines": [], "rects": [], "title": "counting"}


@pytest.fixture
def counting_solver_class():
    return CountingSolver
