"""Domain-specific exceptions."""
from .base_exceptions import RoutingError


class MeshStructureError(RoutingError):
    """Raised when the input mesh references a node or port that does not exist.

    A malformed mesh cannot be routed around, so this is always fatal for
    the solver that hits it.
    """

    def __init__(self, message: str, node_id: str = None, port_id: str = None, **kwargs):
        """Initialize mesh structure error.

        Args:
            message: Error message
            node_id: Capacity node id that could not be resolved
            port_id: Port point id that could not be resolved
        """
        super().__init__(message, error_code=kwargs.pop('error_code', 'MESH_STRUCTURE'), **kwargs)
        self.node_id = node_id
        self.port_id = port_id


class EndpointResolutionError(RoutingError):
    """Raised when a connection endpoint cannot be matched to any capacity node."""

    def __init__(self, message: str, net_id: str, endpoint: str = None, **kwargs):
        """Initialize endpoint resolution error.

        Args:
            message: Error message
            net_id: Connection whose endpoint failed
            endpoint: "start" or "end"
        """
        super().__init__(message, net_id=net_id, error_code=kwargs.pop('error_code', 'ENDPOINT'), **kwargs)
        self.endpoint = endpoint
