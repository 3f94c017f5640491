"""Solver execution model and the region/port search primitive."""
from .solver import BaseSolver
from .region_graph_solver import RegionGraphSolver
from .variants import SolverVariant, VariantRunResult, build_variants, run_variants, select_best_variant

__all__ = [
    'BaseSolver', 'RegionGraphSolver',
    'SolverVariant', 'VariantRunResult', 'build_variants', 'run_variants', 'select_best_variant'
]
