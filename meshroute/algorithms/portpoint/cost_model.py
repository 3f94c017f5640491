"""Cost terms used to rank pathing candidates."""
from dataclasses import dataclass
from typing import Optional, Tuple

from ...domain.models.geometry import Coordinate, distance, point_to_line_distance
from ...domain.models.graph import Port, Region
from ...domain.services.congestion import memory_penalty


@dataclass
class PathingCostModel:
    """Weights for the heuristic, region crossing and port usage costs."""
    port_usage_penalty: float = 0.15
    region_transition_penalty: float = 0.6
    region_size_penalty_factor: float = 0.01
    center_bias_factor: float = 0.05
    memory_pf_factor: float = 1.0
    straight_line_deviation_penalty: float = 0.0

    def compute_h(self, port: Port, end_center: Optional[Coordinate],
                  memory_pf: float = 0.0,
                  straight_line: Optional[Tuple[Coordinate, Coordinate]] = None) -> float:
        """Estimated remaining cost from ``port`` to the end region.

        Args:
            port: Port the candidate reached
            end_center: Center of the destination region
            memory_pf: Remembered probability of failure of the region being entered
            straight_line: Start and end points of the connection

        Returns:
            Heuristic cost, never negative
        """
        if end_center is None:
            return 0.0

        h = distance(port.x, port.y, end_center.x, end_center.y)

        center_distance = port.point.dist_to_centermost_port_on_z
        if center_distance:
            h += center_distance * self.center_bias_factor

        if memory_pf > 0 and self.memory_pf_factor:
            h += memory_penalty(memory_pf, self.memory_pf_factor)

        if straight_line is not None and self.straight_line_deviation_penalty:
            start, end = straight_line
            deviation = point_to_line_distance(port.x, port.y, start.x, start.y, end.x, end.y)
            h += deviation * self.straight_line_deviation_penalty

        return h

    def region_transition_cost(self, region: Region, port_a: Port, port_b: Port) -> float:
        """Cost of crossing ``region`` from ``port_a`` to ``port_b``."""
        transition = distance(port_a.x, port_a.y, port_b.x, port_b.y)
        size_penalty = max(region.width, region.height) * self.region_size_penalty_factor
        return transition * self.region_transition_penalty + size_penalty

    def port_usage_cost(self, port: Port) -> float:
        return port.rip_count * self.port_usage_penalty
