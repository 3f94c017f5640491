"""Rip-up policy: which solved routes to tear up after a new route completes."""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Set

import numpy as np

from ...domain.models.graph import Region, SolvedRoute

logger = logging.getLogger(__name__)

RegionPfFunction = Callable[[Region, Set[SolvedRoute]], float]


@dataclass
class RipBudget:
    """Global and per-region rip limits for one solve."""
    max_rips: int = 500
    max_region_rips: int = 100
    total_rips: int = 0
    region_rips: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def remaining(self) -> int:
        return max(0, self.max_rips - self.total_rips)

    def region_remaining(self, region_id: str) -> int:
        return max(0, self.max_region_rips - self.region_rips[region_id])

    def record_region_rip(self, region_id: str):
        self.region_rips[region_id] += 1


@dataclass
class RipDecision:
    """Routes marked for ripping and how each was chosen."""
    routes: Set[SolvedRoute] = field(default_factory=set)
    mandatory: Set[SolvedRoute] = field(default_factory=set)
    threshold: List[SolvedRoute] = field(default_factory=list)
    random: List[SolvedRoute] = field(default_factory=list)
    region_pfs: Dict[str, float] = field(default_factory=dict)


def _sorted_routes(routes) -> List[SolvedRoute]:
    return sorted(routes, key=lambda r: r.connection.connection_id)


class RipPolicy:
    """Escalating-threshold rip policy with random diversification."""

    def __init__(self, budget: RipBudget,
                 rip_node_pf_threshold_start: float = 0.3,
                 random_rip_fraction: float = 0.1):
        self.budget = budget
        self.rip_node_pf_threshold_start = rip_node_pf_threshold_start
        self.random_rip_fraction = random_rip_fraction

    def get_region_threshold(self, region_id: str) -> float:
        """pf above which a region triggers rips.

        Starts at ``rip_node_pf_threshold_start`` and climbs to 1.0 as the
        region uses up its rip budget.
        """
        if self.budget.max_region_rips <= 0:
            return 1.0
        fraction = min(1.0, self.budget.region_rips[region_id] / self.budget.max_region_rips)
        return self.rip_node_pf_threshold_start * (1 - fraction) + 1.0 * fraction

    def decide(self, new_route: SolvedRoute,
               mandatory: Set[SolvedRoute],
               solved_routes: List[SolvedRoute],
               compute_region_pf: RegionPfFunction,
               rng: np.random.Generator) -> RipDecision:
        """Choose the routes to rip for a newly completed route.

        Args:
            new_route: The route that just completed
            mandatory: Routes that conflict with the new route's ports
            solved_routes: Routes currently on the board, new route excluded
            compute_region_pf: pf of a region given the routes marked so far
            rng: Seeded generator for reproducible choices

        Returns:
            RipDecision with every marked route and the final pf per region
        """
        network_id = new_route.connection.network_id
        decision = RipDecision()
        marked: Set[SolvedRoute] = set(mandatory)
        decision.mandatory = set(mandatory)
        remaining = self.budget.remaining() - len(marked)

        traversed = new_route.get_traversed_regions()
        for region in traversed:
            region_id = region.region_id
            pf = compute_region_pf(region, marked)
            threshold = self.get_region_threshold(region_id)
            if pf <= threshold:
                continue

            pool = _sorted_routes({
                assignment.solved_route for assignment in region.assignments
                if assignment.connection.network_id != network_id
                and assignment.solved_route not in marked
            })
            if not pool:
                continue
            order = [pool[i] for i in rng.permutation(len(pool))]

            for route in order:
                if pf <= threshold:
                    break
                if remaining <= 0 or self.budget.region_remaining(region_id) <= 0:
                    break
                marked.add(route)
                decision.threshold.append(route)
                remaining -= 1
                self.budget.record_region_rip(region_id)
                pf = compute_region_pf(region, marked)
                threshold = self.get_region_threshold(region_id)

            logger.debug(f"[RIP] Region {region_id}: pf {pf:.3f} threshold {threshold:.3f}")

        if marked and remaining > 0 and self.random_rip_fraction > 0:
            pool = _sorted_routes(
                route for route in solved_routes
                if route.connection.network_id != network_id and route not in marked
            )
            count = min(int(math.floor(len(pool) * self.random_rip_fraction)), remaining)
            if count > 0:
                picks = rng.choice(len(pool), size=count, replace=False)
                for index in sorted(int(i) for i in picks):
                    marked.add(pool[index])
                    decision.random.append(pool[index])
                remaining -= count

        for region in traversed:
            decision.region_pfs[region.region_id] = compute_region_pf(region, marked)

        decision.routes = marked
        if marked:
            logger.debug(f"[RIP] {new_route.connection.connection_id}: {len(decision.mandatory)} mandatory, "
                         f"{len(decision.threshold)} threshold, {len(decision.random)} random")
        return decision
