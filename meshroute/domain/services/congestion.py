"""Intra-node crossing counts and the node probability-of-failure estimate.

Port points of a node are projected onto a circle around the node center.
Each connection contributes chords between its consecutive port points; two
chords cross when their endpoints interleave around the circle.
"""
import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..models.geometry import Coordinate
from ..models.mesh import AssignedPortPoint

logger = logging.getLogger(__name__)

VIA_DIAMETER = 0.6
OBSTACLE_MARGIN = 0.2
SAME_LAYER_CROSSING_VIAS = 0.82
LAYER_CHANGE_VIAS = 0.41
TRANSITION_CROSSING_VIAS = 0.2
CAPACITY_EXPONENT = 1.1
MAX_PF = 0.9999


@dataclass(frozen=True)
class IntraNodeCrossings:
    """Crossing counts for one node's port point layout."""
    num_same_layer_crossings: int = 0
    num_entry_exit_layer_changes: int = 0
    num_transition_pair_crossings: int = 0

    @property
    def total(self) -> int:
        return (self.num_same_layer_crossings +
                self.num_entry_exit_layer_changes +
                self.num_transition_pair_crossings)


def _pair_port_points(port_points: Sequence[AssignedPortPoint]) -> List[tuple]:
    by_connection = OrderedDict()
    for point in port_points:
        by_connection.setdefault(point.connection_name, []).append(point)

    pairs = []
    for points in by_connection.values():
        for i in range(0, len(points) - 1, 2):
            pairs.append((points[i], points[i + 1]))
    return pairs


def get_intra_node_crossings(center: Coordinate,
                             port_points: Sequence[AssignedPortPoint]) -> IntraNodeCrossings:
    """Count crossings between the chords formed by each connection's port points.

    Args:
        center: Node center the points are projected around
        port_points: Port points assigned inside the node

    Returns:
        IntraNodeCrossings with same-layer, layer-change and transition counts
    """
    pairs = _pair_port_points(port_points)
    if not pairs:
        return IntraNodeCrossings()

    coords = np.array([[a.x, a.y, b.x, b.y] for a, b in pairs], dtype=float)
    z = np.array([[a.z, b.z] for a, b in pairs], dtype=int)

    angle_a = np.mod(np.arctan2(coords[:, 1] - center.y, coords[:, 0] - center.x), 2 * np.pi)
    angle_b = np.mod(np.arctan2(coords[:, 3] - center.y, coords[:, 2] - center.x), 2 * np.pi)
    lo = np.minimum(angle_a, angle_b)
    hi = np.maximum(angle_a, angle_b)

    is_transition = z[:, 0] != z[:, 1]
    num_layer_changes = int(np.count_nonzero(is_transition))

    if len(pairs) < 2:
        return IntraNodeCrossings(num_entry_exit_layer_changes=num_layer_changes)

    # Chord j has exactly one endpoint strictly inside chord i's arc
    lo_j = lo[np.newaxis, :]
    hi_j = hi[np.newaxis, :]
    lo_in = (lo_j > lo[:, np.newaxis]) & (lo_j < hi[:, np.newaxis])
    hi_in = (hi_j > lo[:, np.newaxis]) & (hi_j < hi[:, np.newaxis])
    interleaved = lo_in ^ hi_in
    # Shared endpoints do not count as crossings
    shared = np.isclose(lo_j, lo[:, np.newaxis]) | np.isclose(hi_j, hi[:, np.newaxis]) | \
        np.isclose(lo_j, hi[:, np.newaxis]) | np.isclose(hi_j, lo[:, np.newaxis])
    interleaved &= ~shared
    upper = np.triu(np.ones_like(interleaved, dtype=bool), k=1)
    interleaved &= upper

    either_transition = is_transition[:, np.newaxis] | is_transition[np.newaxis, :]
    same_z = (~is_transition[:, np.newaxis]) & (~is_transition[np.newaxis, :]) & \
        (z[:, 0][:, np.newaxis] == z[:, 0][np.newaxis, :])

    return IntraNodeCrossings(
        num_same_layer_crossings=int(np.count_nonzero(interleaved & same_z)),
        num_entry_exit_layer_changes=num_layer_changes,
        num_transition_pair_crossings=int(np.count_nonzero(interleaved & either_transition)),
    )


def compute_node_total_capacity(width: float) -> float:
    """Approximate how many vias fit across a node of the given width."""
    return (width / (VIA_DIAMETER / 2 + OBSTACLE_MARGIN) / 2) ** CAPACITY_EXPONENT


def calculate_node_probability_of_failure(width: float,
                                          crossings: IntraNodeCrossings,
                                          available_z: Sequence[int] = (0,),
                                          contains_target: bool = False) -> float:
    """Map crossing counts onto a probability of failure in [0, 1).

    Nodes holding a connection target are never considered congested.
    A single-layer node cannot resolve a same-layer crossing at all.
    """
    if contains_target or crossings.total == 0:
        return 0.0

    if len(set(available_z)) <= 1 and crossings.num_same_layer_crossings > 0:
        return MAX_PF

    est_vias = (crossings.num_same_layer_crossings * SAME_LAYER_CROSSING_VIAS +
                crossings.num_entry_exit_layer_changes * LAYER_CHANGE_VIAS +
                crossings.num_transition_pair_crossings * TRANSITION_CROSSING_VIAS)
    used_capacity = (est_vias / 2) ** CAPACITY_EXPONENT
    total_capacity = compute_node_total_capacity(width)
    if total_capacity <= 0:
        return MAX_PF

    return min(used_capacity / total_capacity, MAX_PF)


def memory_penalty(pf: float, factor: float) -> float:
    """Turn a probability of failure into an unbounded but finite cost."""
    clamped = min(max(pf, 0.0), MAX_PF)
    return -math.log(1 - clamped) * factor
