"""Aggregate board quality score."""
import logging
import math
from typing import Iterable

from ..models.mesh import NodeWithPortPoints
from .congestion import MAX_PF, calculate_node_probability_of_failure, get_intra_node_crossings

logger = logging.getLogger(__name__)


def compute_node_pf(node: NodeWithPortPoints) -> float:
    """Probability of failure for a node with its final port points."""
    if not node.port_points:
        return 0.0
    crossings = get_intra_node_crossings(node.center, node.port_points)
    return calculate_node_probability_of_failure(
        node.width, crossings, node.available_z, node.contains_target
    )


def compute_board_score(nodes: Iterable[NodeWithPortPoints]) -> float:
    """Sum of log success probabilities over all nodes.

    Zero is a perfect board; every congested node pulls the score down.
    Larger is better.
    """
    score = 0.0
    for node in nodes:
        pf = min(compute_node_pf(node), MAX_PF)
        if pf > 0:
            score += math.log(1 - pf)
    logger.debug(f"[SCORE] Board score {score:.4f}")
    return score
