"""Shared exceptions for meshroute."""
from .base_exceptions import (
    MeshRouteException, ConfigurationError, ValidationError, RoutingError
)
from .domain_exceptions import (
    MeshStructureError, EndpointResolutionError
)

__all__ = [
    'MeshRouteException', 'ConfigurationError', 'ValidationError', 'RoutingError',
    'MeshStructureError', 'EndpointResolutionError'
]
