"""Resolve connection endpoints against the node they terminate in.

Endpoint data from earlier stages is occasionally slightly off: the declared
layer may disagree with the layer the path arrives on, or the point may sit
just outside its node. Both are corrected here and logged at error level.
"""
import logging
import re
from typing import List, Optional, Sequence, Tuple

from ...domain.models.mesh import CapacityNode, ConnectionPoint

logger = logging.getLogger(__name__)

DEFAULT_Z = 0
_INNER_LAYER = re.compile(r"^inner(\d+)$")
_NUMBERED_LAYER = re.compile(r"^layer(\d+)$")
_ANY_DIGITS = re.compile(r"\d+")


def get_z_from_layer(layer: Optional[str], default_z: int = DEFAULT_Z) -> int:
    """z index from the first number in a layer name, 1-based; default otherwise."""
    if not layer:
        return default_z
    match = _ANY_DIGITS.search(layer)
    if not match:
        return default_z
    index = int(match.group(0)) - 1
    return index if index >= 0 else default_z


def parse_layer_name_to_z(layer_name: str, available_z: Sequence[int]) -> Optional[int]:
    """Map a layer name onto a z index for a node with ``available_z`` layers.

    ``top`` is 0, ``bottom`` is the deepest layer, ``innerN`` is N and
    ``layerN`` is N - 1. Unknown names give None.
    """
    name = layer_name.strip().lower()
    if name == "top":
        return 0
    if name == "bottom":
        return max(available_z, default=0)
    match = _INNER_LAYER.match(name)
    if match:
        return int(match.group(1))
    match = _NUMBERED_LAYER.match(name)
    if match:
        return int(match.group(1)) - 1
    return None


def get_allowed_z_for_endpoint(point: ConnectionPoint, node: CapacityNode,
                               endpoint_name: str = "endpoint") -> List[int]:
    declared = point.get_layers()
    if not declared:
        logger.error(f"[ENDPOINT] {endpoint_name} endpoint has no declared layers; "
                     f"falling back to candidate z")
        return []

    allowed = []
    for layer_name in declared:
        z = parse_layer_name_to_z(layer_name, node.available_z)
        if z is not None and z not in allowed:
            allowed.append(z)

    if not allowed:
        logger.error(f"[ENDPOINT] {endpoint_name} endpoint has unparseable layer names: "
                     f"{', '.join(declared)}; falling back to candidate z")
    return allowed


def resolve_endpoint_z(point: ConnectionPoint, candidate_z: int, node: CapacityNode,
                       endpoint_name: str, connection_name: str) -> int:
    """Prefer the path's z; fall back to the nearest declared layer on mismatch."""
    allowed = get_allowed_z_for_endpoint(point, node, endpoint_name)
    if not allowed or candidate_z in allowed:
        return candidate_z

    fallback = min(allowed, key=lambda z: (abs(z - candidate_z), z))
    logger.error(f"[ENDPOINT] Assertion failed: {endpoint_name} endpoint for \"{connection_name}\" "
                 f"is on z={candidate_z} but endpoint allows z in {allowed}; using fallback z={fallback}")
    return fallback


def to_endpoint_within_bounds(point: ConnectionPoint, candidate_z: int,
                              node: Optional[CapacityNode],
                              endpoint_name: str, connection_name: str) -> Tuple[float, float, int]:
    """Resolve an endpoint to (x, y, z) inside its node.

    Without node geometry the raw coordinates and the candidate z pass
    through unchanged.
    """
    if node is None:
        logger.error(f"[ENDPOINT] {endpoint_name} endpoint for \"{connection_name}\" missing node; "
                     f"using raw endpoint/candidate values")
        return point.x, point.y, candidate_z

    z = resolve_endpoint_z(point, candidate_z, node, endpoint_name, connection_name)

    bounds = node.bounds
    if bounds.contains(point.x, point.y):
        return point.x, point.y, z

    x, y = bounds.clamp(point.x, point.y)
    logger.error(f"[ENDPOINT] Assertion failed: {endpoint_name} endpoint for \"{connection_name}\" "
                 f"outside node {node.node_id} bounds; original=({point.x}, {point.y}) "
                 f"clamped=({x}, {y})")
    return x, y, z
