"""Admission filters applied to candidates entering a region."""
import logging
from collections import OrderedDict
from typing import List, Optional

from ...domain.models.graph import Candidate, Port, Region

logger = logging.getLogger(__name__)


def is_claimed_by_other_network(port: Port, network_id: Optional[str]) -> bool:
    return bool(port.get_routes_outside_network(network_id))


def filter_obstacle_candidates(candidates: List[Candidate],
                               start_region: Optional[Region],
                               end_region: Optional[Region]) -> List[Candidate]:
    """Drop candidates entering an obstacle region other than the net's own endpoints."""
    return [
        candidate for candidate in candidates
        if not candidate.next_region.contains_obstacle
        or candidate.next_region is start_region
        or candidate.next_region is end_region
    ]


def cap_candidates_by_cost(candidates: List[Candidate], max_candidates: int) -> List[Candidate]:
    if len(candidates) <= max_candidates:
        return candidates
    # sorted() is stable, so equal f keeps generation order
    return sorted(candidates, key=lambda c: c.f)[:max_candidates]


def _middle_of_longest_free_run(candidates: List[Candidate], network_id: Optional[str]) -> Optional[Candidate]:
    ordered = sorted(candidates, key=lambda c: (c.port.x, c.port.y))
    best_run: List[Candidate] = []
    run: List[Candidate] = []
    for candidate in ordered:
        if is_claimed_by_other_network(candidate.port, network_id):
            run = []
            continue
        run.append(candidate)
        if len(run) > len(best_run):
            best_run = list(run)
    if not best_run:
        return None
    return best_run[(len(best_run) - 1) // 2]


def _center_rank(candidate: Candidate):
    center_distance = candidate.port.point.dist_to_centermost_port_on_z
    return (center_distance if center_distance is not None else 0.0, candidate.port.port_id)


def select_center_first_candidates(candidates: List[Candidate],
                                   network_id: Optional[str]) -> List[Candidate]:
    """Keep one candidate per (next region, layer).

    The kept candidate is the port nearest the centermost port of its edge and
    layer, as measured when the graph was built. When another network already
    holds that port, the middle of the longest run of unclaimed ports along the
    edge is used instead.
    """
    groups = OrderedDict()
    for candidate in candidates:
        key = (candidate.next_region.region_id, candidate.port.z)
        groups.setdefault(key, []).append(candidate)

    selected = []
    for group in groups.values():
        center = min(group, key=_center_rank)
        if is_claimed_by_other_network(center.port, network_id):
            fallback = _middle_of_longest_free_run(group, network_id)
            if fallback is not None:
                logger.debug(f"[SELECT] Center port {center.port.port_id} claimed, "
                             f"using {fallback.port.port_id}")
                center = fallback
        selected.append(center)
    return selected
