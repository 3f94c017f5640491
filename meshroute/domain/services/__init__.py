"""Domain services."""
from .congestion import (
    IntraNodeCrossings, get_intra_node_crossings,
    compute_node_total_capacity, calculate_node_probability_of_failure, memory_penalty
)
from .board_score import compute_node_pf, compute_board_score
from .connectivity import ConnectivityMap, build_connectivity_map

__all__ = [
    'IntraNodeCrossings', 'get_intra_node_crossings',
    'compute_node_total_capacity', 'calculate_node_probability_of_failure', 'memory_penalty',
    'compute_node_pf', 'compute_board_score',
    'ConnectivityMap', 'build_connectivity_map'
]
