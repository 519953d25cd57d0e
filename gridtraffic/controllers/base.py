from abc import ABC, abstractmethod
from typing import Dict

from gridtraffic.domain.models import Approach, IntersectionController, Phase, SignalState

GREEN_APPROACHES = {
    Phase.VERTICAL: (Approach.NORTH, Approach.SOUTH),
    Phase.HORIZONTAL: (Approach.EAST, Approach.WEST),
}

class Controller(ABC):
    def __init__(self, state: IntersectionController):
        self.state = state

    @abstractmethod
    def run_tick(self) -> bool:
        """Advance one tick. Returns True when the phase flipped."""

    def light_states(self) -> Dict[Approach, SignalState]:
        green = GREEN_APPROACHES[self.state.phase]
        return {a: SignalState.GREEN if a in green else SignalState.RED for a in Approach}
