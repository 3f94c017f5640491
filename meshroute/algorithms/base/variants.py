"""Running several solver configurations side by side and keeping the best one."""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from .solver import BaseSolver

logger = logging.getLogger(__name__)


@dataclass
class SolverVariant:
    """A named solver configuration wrapped around its own solver instance."""
    name: str
    params: Dict[str, Any]
    solver: BaseSolver

    @property
    def cost(self) -> float:
        """Cost reported by the solver, infinite while it has none."""
        get_cost = getattr(self.solver, "get_cost", None)
        if get_cost is None:
            return float("inf")
        return get_cost()


@dataclass
class VariantRunResult:
    iterations_used: int
    exhausted_budget: bool
    finished: List[str] = field(default_factory=list)


def build_variants(factory: Callable[..., BaseSolver],
                   param_sets: Iterable[Dict[str, Any]],
                   name_prefix: str = "variant") -> List[SolverVariant]:
    """Create one independent solver per parameter set.

    A parameter set may carry a ``name`` key; otherwise variants are numbered.
    """
    variants = []
    for index, params in enumerate(param_sets):
        params = dict(params)
        name = params.pop("name", f"{name_prefix}{index}")
        variants.append(SolverVariant(name=name, params=params, solver=factory(**params)))
    return variants


def run_variants(variants: List[SolverVariant], iteration_budget: int) -> VariantRunResult:
    """Step every unfinished variant round-robin until all finish or the budget runs out.

    Args:
        variants: Variants to run
        iteration_budget: Total number of steps shared by all variants

    Returns:
        VariantRunResult with the steps used
    """
    used = 0
    while used < iteration_budget:
        active = [variant for variant in variants if not variant.solver.is_done]
        if not active:
            break
        for variant in active:
            if used >= iteration_budget:
                break
            variant.solver.step()
            used += 1

    exhausted = any(not variant.solver.is_done for variant in variants)
    if exhausted:
        logger.info(f"[VARIANTS] Shared budget of {iteration_budget} steps exhausted")
    return VariantRunResult(
        iterations_used=used,
        exhausted_budget=exhausted,
        finished=[variant.name for variant in variants if variant.solver.is_done],
    )


def select_best_variant(variants: Iterable[SolverVariant]) -> Optional[SolverVariant]:
    """Pick the solved variant with the lowest cost, ties broken by name."""
    solved = [variant for variant in variants if variant.solver.solved]
    if not solved:
        return None
    return min(solved, key=lambda variant: (variant.cost, variant.name))
