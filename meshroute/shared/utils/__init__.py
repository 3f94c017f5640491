"""Shared utilities."""
from .logging_utils import (
    DEFAULT_COMPONENT_LEVELS, ContextLogger, SolverLogger,
    get_component_levels, get_context_logger, get_solver_logger, setup_logging
)
from .validation_utils import (
    validate_coordinates, validate_layer_index, validate_net_id,
    validate_positive_number, validate_non_negative_number, validate_range
)

__all__ = [
    'DEFAULT_COMPONENT_LEVELS', 'ContextLogger', 'SolverLogger',
    'get_component_levels', 'get_context_logger', 'get_solver_logger', 'setup_logging',
    'validate_coordinates', 'validate_layer_index', 'validate_net_id',
    'validate_positive_number', 'validate_non_negative_number', 'validate_range'
]
