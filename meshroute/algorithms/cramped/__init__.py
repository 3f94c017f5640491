"""Cramped port point filtering."""
from .single_target import SingleTargetNecessaryCrampedPortPointSolver, ExploredPortPoint
from .multi_target import MultiTargetNecessaryCrampedPortPointSolver

__all__ = [
    'SingleTargetNecessaryCrampedPortPointSolver', 'ExploredPortPoint',
    'MultiTargetNecessaryCrampedPortPointSolver'
]
