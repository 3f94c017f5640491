"""Port point pathing: cost model, rip policy, assignment build and the solver."""
from .graph_builder import RegionGraph, build_region_graph
from .connections import build_connections, find_node_for_point
from .cost_model import PathingCostModel
from .congestion_memory import CongestionMemory
from .rip_policy import RipBudget, RipDecision, RipPolicy
from .assignment_builder import PortOwner, PortPointAssignments, build_port_point_assignments
from .pathing_solver import PortPointPathingSolver

__all__ = [
    'RegionGraph', 'build_region_graph', 'build_connections', 'find_node_for_point',
    'PathingCostModel', 'CongestionMemory', 'RipBudget', 'RipDecision', 'RipPolicy',
    'PortOwner', 'PortPointAssignments', 'build_port_point_assignments',
    'PortPointPathingSolver'
]
