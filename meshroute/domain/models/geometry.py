"""Geometric value objects and helpers shared by the mesh models."""
import math
from dataclasses import dataclass
from typing import Tuple

EPSILON = 1e-9


@dataclass(frozen=True)
class Coordinate:
    """Value object representing a 2D coordinate in mm."""
    x: float
    y: float

    def distance_to(self, other: 'Coordinate') -> float:
        """Calculate Euclidean distance to another coordinate."""
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class Bounds:
    """Value object representing rectangular bounds."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_center(cls, center: Coordinate, width: float, height: float) -> 'Bounds':
        return cls(
            min_x=center.x - width / 2,
            min_y=center.y - height / 2,
            max_x=center.x + width / 2,
            max_y=center.y + height / 2,
        )

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Coordinate:
        return Coordinate(
            x=(self.min_x + self.max_x) / 2,
            y=(self.min_y + self.max_y) / 2
        )

    def contains(self, x: float, y: float, tolerance: float = 0.0) -> bool:
        """Check whether a point lies inside or on the boundary."""
        return (self.min_x - tolerance <= x <= self.max_x + tolerance and
                self.min_y - tolerance <= y <= self.max_y + tolerance)

    def clamp(self, x: float, y: float) -> Tuple[float, float]:
        """Clamp a point to the nearest location inside the bounds, edges included."""
        return (
            min(max(x, self.min_x), self.max_x),
            min(max(y, self.min_y), self.max_y),
        )

    def distance_to_point(self, x: float, y: float) -> float:
        """Distance from a point to the rectangle, zero when inside."""
        dx = max(self.min_x - x, 0.0, x - self.max_x)
        dy = max(self.min_y - y, 0.0, y - self.max_y)
        return math.hypot(dx, dy)


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


def _orientation(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> int:
    value = (by - ay) * (cx - bx) - (bx - ax) * (cy - by)
    if abs(value) < EPSILON:
        return 0
    return 1 if value > 0 else 2


def _on_segment(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> bool:
    # b is collinear with a-c; is it within the a-c box?
    return (min(ax, cx) - EPSILON <= bx <= max(ax, cx) + EPSILON and
            min(ay, cy) - EPSILON <= by <= max(ay, cy) + EPSILON)


def do_segments_intersect(p1: Tuple[float, float], q1: Tuple[float, float],
                          p2: Tuple[float, float], q2: Tuple[float, float]) -> bool:
    """Return True when segment p1-q1 touches or crosses segment p2-q2."""
    o1 = _orientation(*p1, *q1, *p2)
    o2 = _orientation(*p1, *q1, *q2)
    o3 = _orientation(*p2, *q2, *p1)
    o4 = _orientation(*p2, *q2, *q1)

    if o1 != o2 and o3 != o4:
        return True

    # Collinear special cases
    if o1 == 0 and _on_segment(*p1, *p2, *q1):
        return True
    if o2 == 0 and _on_segment(*p1, *q2, *q1):
        return True
    if o3 == 0 and _on_segment(*p2, *p1, *q2):
        return True
    if o4 == 0 and _on_segment(*p2, *q1, *q2):
        return True
    return False


def point_to_line_distance(px: float, py: float,
                           ax: float, ay: float, bx: float, by: float) -> float:
    """Perpendicular distance from a point to the infinite line through a and b.

    Degenerates to point distance when a and b coincide.
    """
    dx = bx - ax
    dy = by - ay
    length = math.hypot(dx, dy)
    if length < EPSILON:
        return math.hypot(px - ax, py - ay)
    return abs(dy * px - dx * py + bx * ay - by * ax) / length
