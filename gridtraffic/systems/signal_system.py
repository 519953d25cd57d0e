import random
from typing import Dict, List, Tuple

from gridtraffic.controllers.implementations import RandomCycleController
from gridtraffic.domain.errors import NoTargetFound
from gridtraffic.domain.graph import intersection_id
from gridtraffic.domain.grid import Grid
from gridtraffic.domain.models import Approach, IntersectionController, SignalLight, SignalState

# Side of the intersection a vehicle arrives from, by heading
APPROACH_FOR_HEADING = {
    0: Approach.SOUTH,
    90: Approach.WEST,
    180: Approach.NORTH,
    270: Approach.EAST,
}

# Light cell relative to the intersection center: the inbound lane cell
# just outside the 2x2 intersection
LIGHT_OFFSETS = {
    Approach.SOUTH: (1, -1),
    Approach.NORTH: (0, 2),
    Approach.WEST: (-1, 0),
    Approach.EAST: (2, 1),
}

class SignalSystem:
    def __init__(self, grid: Grid, rng: random.Random, min_cycle: int, max_cycle: int):
        self.grid = grid
        self.controllers: Dict[str, RandomCycleController] = {}
        self.lights: Dict[str, Dict[Approach, SignalLight]] = {}
        self._by_center: Dict[Tuple[int, int], str] = {}

        network = grid.road_network
        for node in network.intersections():
            cx, cy = network.get_node_pos(node)
            state = IntersectionController(id=node, x=cx, y=cy)
            controller_rng = random.Random(rng.getrandbits(64))
            self.controllers[node] = RandomCycleController(state, controller_rng, min_cycle, max_cycle)
            self.lights[node] = {
                approach: SignalLight(intersectionId=node, approach=approach, x=cx + dx, y=cy + dy)
                for approach, (dx, dy) in LIGHT_OFFSETS.items()
            }
            self._by_center[(cx, cy)] = node
            self._sync_lights(node)

    def update(self):
        for node, controller in self.controllers.items():
            controller.run_tick()
            # Lights follow the phase every tick, not only on a flip
            self._sync_lights(node)

    def _sync_lights(self, node: str):
        states = self.controllers[node].light_states()
        for approach, light in self.lights[node].items():
            light.state = states[approach]

    def controller_at(self, x: int, y: int) -> RandomCycleController:
        """Controller owning the intersection that contains cell (x, y)."""
        center = self.grid.center_of(x, y)
        node = self._by_center.get(center)
        if node is None:
            raise NoTargetFound(f"No controller for intersection {intersection_id(*center)}")
        return self.controllers[node]

    def light_for(self, x: int, y: int, heading: int) -> SignalState:
        controller = self.controller_at(x, y)
        return self.lights[controller.state.id][APPROACH_FOR_HEADING[heading]].state

    def all_lights(self) -> List[SignalLight]:
        return [light for node in self.controllers for light in self.lights[node].values()]
