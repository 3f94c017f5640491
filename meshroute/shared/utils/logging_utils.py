"""Logging setup and solver-scoped loggers for meshroute."""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from ..configuration.settings import LoggingSettings

# Per-candidate search chatter stays out of DEBUG runs unless a component asks for it
DEFAULT_COMPONENT_LEVELS = {
    "meshroute.algorithms.base.region_graph_solver": "INFO",
    "meshroute.algorithms.portpoint.candidate_selection": "INFO",
}


def _to_level(name: str) -> int:
    return getattr(logging, name.upper())


def get_component_levels(settings: 'LoggingSettings') -> Dict[str, str]:
    """Component logger levels: the defaults, overridden by ``settings``."""
    levels = dict(DEFAULT_COMPONENT_LEVELS)
    levels.update(settings.component_levels)
    return levels


def setup_logging(settings: 'LoggingSettings') -> None:
    """Configure root handlers and the meshroute component levels.

    Args:
        settings: Logging settings configuration
    """
    level = _to_level(settings.level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(fmt=settings.format_string, datefmt=settings.date_format)

    if settings.console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if settings.file_output:
        try:
            log_path = Path(settings.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(log_path),
                maxBytes=settings.max_file_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"[LOGGING] Failed to setup file logging at {settings.log_file}: {e}")

    component_levels = get_component_levels(settings)
    for component, component_level in component_levels.items():
        logging.getLogger(component).setLevel(_to_level(component_level))

    root_logger.info(f"[LOGGING] meshroute logging initialized at {settings.level.upper()} "
                     f"with {len(component_levels)} component levels")


class ContextLogger(logging.LoggerAdapter):
    """Prefixes every message with ``[key=value ...]`` context."""

    def get_context(self) -> Dict[str, Any]:
        return dict(self.extra or {})

    def process(self, msg, kwargs):
        context = self.get_context()
        if context:
            context_str = " ".join(f"{k}={v}" for k, v in context.items())
            msg = f"[{context_str}] {msg}"
        return msg, kwargs

    def bind(self, **context) -> 'ContextLogger':
        """A copy of this logger with extra context added."""
        merged = self.get_context()
        merged.update(context)
        return ContextLogger(self.logger, merged)


class SolverLogger(ContextLogger):
    """Context logger that reads a solver's name and iteration when it logs.

    Bound context such as the connection being routed follows the solver
    fields, e.g. ``[solver=PortPointPathingSolver iteration=12 connection=B]``.
    """

    def __init__(self, logger: logging.Logger, solver, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})
        self.solver = solver

    def get_context(self) -> Dict[str, Any]:
        context = {"solver": self.solver.get_solver_name(), "iteration": self.solver.iterations}
        context.update(self.extra or {})
        return context

    def bind(self, **context) -> 'SolverLogger':
        merged = dict(self.extra or {})
        merged.update(context)
        return SolverLogger(self.logger, self.solver, merged)


def get_context_logger(name: str, **context) -> ContextLogger:
    """Get a logger that prefixes fixed context to every message."""
    return ContextLogger(logging.getLogger(name), context)


def get_solver_logger(name: str, solver, **context) -> SolverLogger:
    """Get a logger that prefixes the solver's live name and iteration."""
    return SolverLogger(logging.getLogger(name), solver, context)
