"""
meshroute - incremental capacity-mesh PCB autorouter
"""
# Version information
__version__ = "0.1.0"
__license__ = "MIT"
__description__ = "Congestion-aware port point pathing with rip-up and reroute"

from .algorithms.base import BaseSolver, RegionGraphSolver, build_variants, run_variants, select_best_variant
from .algorithms.portpoint import PortPointPathingSolver, build_port_point_assignments
from .algorithms.cramped import MultiTargetNecessaryCrampedPortPointSolver
from .application.services import PortPointRoutingPipeline
from .domain.models import (
    Coordinate, CapacityNode, PortPoint, ConnectionPoint, ConnectionSpec,
    AssignedPortPoint, NodeWithPortPoints, ConnectionResult, PathPoint
)
from .domain.services import compute_board_score
from .shared.configuration import PathingSettings, ConfigManager
from .shared.exceptions import MeshRouteException, MeshStructureError, EndpointResolutionError

__all__ = [
    'BaseSolver', 'RegionGraphSolver', 'build_variants', 'run_variants', 'select_best_variant',
    'PortPointPathingSolver', 'build_port_point_assignments',
    'MultiTargetNecessaryCrampedPortPointSolver', 'PortPointRoutingPipeline',
    'Coordinate', 'CapacityNode', 'PortPoint', 'ConnectionPoint', 'ConnectionSpec',
    'AssignedPortPoint', 'NodeWithPortPoints', 'ConnectionResult', 'PathPoint',
    'compute_board_score', 'PathingSettings', 'ConfigManager',
    'MeshRouteException', 'MeshStructureError', 'EndpointResolutionError',
]
