import logging
import random

from gridtraffic.controllers.base import Controller
from gridtraffic.domain.models import IntersectionController, Phase

logger = logging.getLogger(__name__)

class RandomCycleController(Controller):
    """Two-phase controller whose phase length is redrawn on every flip.

    Each instance owns its random stream, so neighbouring intersections
    drift out of step over time.
    """

    def __init__(self, state: IntersectionController, rng: random.Random, min_cycle: int, max_cycle: int):
        super().__init__(state)
        self.rng = rng
        self.min_cycle = min_cycle
        self.max_cycle = max_cycle
        self.state.phase = Phase.VERTICAL
        self.state.timer = 0
        self.state.threshold = self.sample_threshold()

    def sample_threshold(self) -> int:
        return self.min_cycle + self.rng.randint(0, self.max_cycle - self.min_cycle)

    def run_tick(self) -> bool:
        self.state.timer += 1
        if self.state.timer < self.state.threshold:
            return False

        self.state.phase = Phase.HORIZONTAL if self.state.phase == Phase.VERTICAL else Phase.VERTICAL
        self.state.timer = 0
        self.state.threshold = self.sample_threshold()
        self.state.flips += 1
        logger.debug("%s switched to %s (next flip after %d ticks)",
                     self.state.id, self.state.phase.value, self.state.threshold)
        return True
