"""Validation utilities for meshroute."""
import math
import re
from typing import Tuple, Any

from ..exceptions import ValidationError


def validate_coordinates(x: float, y: float, bounds: Tuple[float, float, float, float] = None) -> None:
    """Validate coordinate values.

    Args:
        x: X coordinate
        y: Y coordinate
        bounds: Optional bounds as (min_x, min_y, max_x, max_y)

    Raises:
        ValidationError: If coordinates are invalid
    """
    if not isinstance(x, (int, float)) or isinstance(x, bool):
        raise ValidationError(f"X coordinate must be numeric, got {type(x)}", field="x", value=x)

    if not isinstance(y, (int, float)) or isinstance(y, bool):
        raise ValidationError(f"Y coordinate must be numeric, got {type(y)}", field="y", value=y)

    if not math.isfinite(x) or not math.isfinite(y):
        raise ValidationError(f"Coordinates must be finite, got ({x}, {y})", field="x,y", value=(x, y))

    if bounds:
        min_x, min_y, max_x, max_y = bounds

        if x < min_x or x > max_x:
            raise ValidationError(
                f"X coordinate {x} out of bounds [{min_x}, {max_x}]",
                field="x", value=x
            )

        if y < min_y or y > max_y:
            raise ValidationError(
                f"Y coordinate {y} out of bounds [{min_y}, {max_y}]",
                field="y", value=y
            )


def validate_layer_index(layer: int, max_layers: int = None) -> None:
    """Validate a z layer index.

    Raises:
        ValidationError: If layer index is invalid
    """
    if not isinstance(layer, int) or isinstance(layer, bool):
        raise ValidationError(f"Layer must be integer, got {type(layer)}", field="layer", value=layer)

    if layer < 0:
        raise ValidationError(f"Layer index must be non-negative, got {layer}", field="layer", value=layer)

    if max_layers is not None and layer >= max_layers:
        raise ValidationError(
            f"Layer index {layer} exceeds maximum {max_layers - 1}",
            field="layer", value=layer
        )


def validate_net_id(net_id: str) -> None:
    """Validate a connection name.

    Raises:
        ValidationError: If the name is empty or contains whitespace/control characters
    """
    if not isinstance(net_id, str):
        raise ValidationError(f"Net ID must be string, got {type(net_id)}", field="net_id", value=net_id)

    if not net_id.strip():
        raise ValidationError("Net ID cannot be empty", field="net_id", value=net_id)

    if re.search(r'\s', net_id):
        raise ValidationError(
            f"Net ID contains whitespace: {net_id!r}",
            field="net_id", value=net_id
        )


def validate_positive_number(value: Any, field_name: str) -> None:
    """Validate that a value is a positive number.

    Raises:
        ValidationError: If value is not a positive number
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be numeric, got {type(value)}",
            field=field_name, value=value
        )

    if value <= 0:
        raise ValidationError(
            f"{field_name} must be positive, got {value}",
            field=field_name, value=value
        )


def validate_non_negative_number(value: Any, field_name: str) -> None:
    """Validate that a value is a non-negative number.

    Raises:
        ValidationError: If value is not non-negative
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be numeric, got {type(value)}",
            field=field_name, value=value
        )

    if value < 0:
        raise ValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name, value=value
        )


def validate_range(value: Any, field_name: str, min_val: float, max_val: float) -> None:
    """Validate that a value is within a specified range.

    Raises:
        ValidationError: If value is not in range
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be numeric, got {type(value)}",
            field=field_name, value=value
        )

    if value < min_val or value > max_val:
        raise ValidationError(
            f"{field_name} must be between {min_val} and {max_val}, got {value}",
            field=field_name, value=value
        )
