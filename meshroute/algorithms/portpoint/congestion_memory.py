"""Decaying per-region memory of congestion."""
import logging
from typing import Dict, Iterable, Tuple

logger = logging.getLogger(__name__)


class CongestionMemory:
    """Remembers the worst recent probability of failure of each region.

    A region's value rises immediately with new evidence and otherwise
    decays by ``decay`` each time a route touches it. Regions no route has
    touched read as zero.
    """

    def __init__(self, decay: float = 0.98):
        self.decay = decay
        self._memory: Dict[str, float] = {}

    def get(self, region_id: str) -> float:
        return self._memory.get(region_id, 0.0)

    def update(self, region_id: str, fresh_pf: float) -> float:
        """Record a fresh pf for a region touched by a completed route."""
        previous = self._memory.get(region_id, 0.0)
        value = max(fresh_pf, previous * self.decay)
        self._memory[region_id] = value
        return value

    def items(self) -> Iterable[Tuple[str, float]]:
        return self._memory.items()

    def snapshot(self) -> Dict[str, float]:
        return dict(self._memory)

    def __len__(self) -> int:
        return len(self._memory)

    def __contains__(self, region_id: str) -> bool:
        return region_id in self._memory
