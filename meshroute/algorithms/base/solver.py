"""Incremental solver execution model.

Every solver advances in bounded units of work through ``step()``. A solver
ends either solved or failed; both states are terminal. Failures are recorded
on the solver (``failed``/``error``) and never escape ``step()`` as
exceptions, so a parent can step a child and inspect the result.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ...shared.utils.logging_utils import SolverLogger, get_solver_logger

logger = logging.getLogger(__name__)


class BaseSolver(ABC):
    """Abstract base class for steppable solvers."""

    MAX_ITERATIONS = 100_000

    def __init__(self):
        self.solved = False
        self.failed = False
        self.error: Optional[str] = None
        self.iterations = 0
        self.setup_done = False
        self.active_sub_solver: Optional['BaseSolver'] = None
        self.stats: Dict[str, Any] = {}
        self._solver_logger: Optional[SolverLogger] = None

    @property
    def is_done(self) -> bool:
        return self.solved or self.failed

    def get_solver_name(self) -> str:
        return type(self).__name__

    @property
    def solver_logger(self) -> SolverLogger:
        """Logger of the concrete solver's module, prefixed with its name and iteration."""
        if self._solver_logger is None:
            self._solver_logger = get_solver_logger(type(self).__module__, self)
        return self._solver_logger

    def setup(self):
        """One-time initialization, run automatically before the first step."""
        if self.setup_done:
            return
        self.setup_done = True
        try:
            self._setup()
        except Exception as e:
            logger.exception(f"[SOLVER] {self.get_solver_name()} setup failed")
            self.fail(str(e))

    def _setup(self):
        pass

    def step(self):
        """Advance exactly one unit of work. No-op on a terminal solver."""
        if not self.setup_done:
            self.setup()
        if self.is_done:
            return

        if self.iterations >= self.MAX_ITERATIONS:
            self.fail(f"{self.get_solver_name()} ran out of iterations "
                      f"(MAX_ITERATIONS={self.MAX_ITERATIONS})")
            return

        self.iterations += 1
        try:
            self._step()
        except Exception as e:
            logger.exception(f"[SOLVER] {self.get_solver_name()} step {self.iterations} raised")
            self.solved = False
            self.fail(f"{self.get_solver_name()} error: {e}")

    @abstractmethod
    def _step(self):
        """Perform one unit of work. May raise; step() converts it into a failure."""
        pass

    def solve(self) -> 'BaseSolver':
        """Step until solved or failed."""
        while not self.is_done:
            self.step()
        if self.failed:
            logger.warning(f"[SOLVER] {self.get_solver_name()} failed after "
                           f"{self.iterations} iterations: {self.error}")
        else:
            logger.info(f"[SOLVER] {self.get_solver_name()} solved in {self.iterations} iterations")
        return self

    def fail(self, error: str):
        self.failed = True
        self.error = error

    def step_active_sub_solver(self) -> Optional['BaseSolver']:
        """Step the active sub-solver once.

        A failed child's flag and error are copied to this solver verbatim.

        Returns:
            The child once it is solved, so the caller can consume its output
            and clear ``active_sub_solver``; otherwise None.
        """
        child = self.active_sub_solver
        if child is None:
            return None

        child.step()
        if child.failed:
            self.fail(child.error)
            return None
        if child.solved:
            return child
        return None

    def get_output(self) -> Any:
        return None

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "solver": self.get_solver_name(),
            "iterations": self.iterations,
            "solved": self.solved,
            "failed": self.failed,
            "error": self.error,
            **self.stats,
        }

    def visualize(self) -> Dict[str, Any]:
        """Read-only graphics snapshot of the current state.

        A parent includes its active child's graphics.
        """
        graphics = self._visualize()
        child = self.active_sub_solver
        if child is not None:
            child_graphics = child.visualize()
            for key in ("points", "lines", "rects"):
                graphics[key] = graphics.get(key, []) + child_graphics.get(key, [])
        return graphics

    def _visualize(self) -> Dict[str, Any]:
        return {"points": [], "lines": [], "rects": [], "title": self.get_solver_name()}

    def __repr__(self) -> str:
        state = "solved" if self.solved else "failed" if self.failed else "unsolved"
        return f"{self.get_solver_name()}(state={state}, iterations={self.iterations})"
