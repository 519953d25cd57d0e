import math
from collections import Counter
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from gridtraffic.domain import config
from gridtraffic.domain.errors import NoTargetFound
from gridtraffic.domain.grid import HEADING_VECTORS, Grid, is_vertical, lane_coordinate
from gridtraffic.domain.models import SignalState, Vehicle
from gridtraffic.systems.signal_system import SignalSystem

class Decision(str, Enum):
    ARRIVE = "arrive"
    U_TURN = "u_turn"
    WAIT_SIGNAL = "wait_signal"
    ESCAPE = "escape"
    WAIT_FOLLOW = "wait_follow"
    GO = "go"

WAITING_DECISIONS = (Decision.WAIT_SIGNAL, Decision.WAIT_FOLLOW)

def snap_heading(heading: float) -> int:
    return int(round(heading / 90.0)) * 90 % 360

class VehicleSystem:
    """Per-tick vehicle logic, split into a decide pass and a move pass.

    Both passes read the occupancy recorded at the start of the tick, so the
    result does not depend on the order vehicles are visited in.
    """

    def __init__(self, grid: Grid, signals: SignalSystem):
        self.grid = grid
        self.signals = signals
        self.start_headings: Dict[str, int] = {}

    # Phase 1: decide

    def decide_all(self, vehicles: List[Vehicle]) -> Dict[str, Decision]:
        self.start_headings = {v.id: v.heading for v in vehicles}
        headings = {v.cell: v.heading for v in vehicles}
        return {v.id: self.decide(v, headings) for v in vehicles}

    def decide(self, v: Vehicle, headings: Dict[Tuple[int, int], int]) -> Decision:
        cx, cy = v.cell
        dest_x, dest_y = v.destination

        if abs(v.x - dest_x) <= config.ARRIVAL_TOLERANCE and abs(v.y - dest_y) <= config.ARRIVAL_TOLERANCE:
            return Decision.ARRIVE

        if self.grid.is_facing_edge(cx, cy, v.heading):
            v.heading = (v.heading + 180) % 360
            v.destination = self.grid.destination_for(cx, cy, v.heading)
            self._clear_wait(v)
            return Decision.U_TURN

        ax, ay = self.grid.ahead(cx, cy, v.heading)
        ahead_is_intersection = self.grid.is_road_at(ax, ay) and self.grid.is_intersection(ax, ay)
        on_intersection = self.grid.is_intersection(cx, cy)

        if ahead_is_intersection and not on_intersection:
            try:
                light = self.signals.light_for(ax, ay, v.heading)
            except NoTargetFound:
                light = None
            if light == SignalState.RED:
                self._wait(v)
                return Decision.WAIT_SIGNAL

        if on_intersection and v.waitingTime > config.GRIDLOCK_WAIT_LIMIT:
            self._clear_wait(v)
            return Decision.ESCAPE

        try:
            leader_heading = self._occupant_heading(headings, (ax, ay))
        except NoTargetFound:
            leader_heading = None
        if leader_heading == v.heading:
            self._wait(v)
            return Decision.WAIT_FOLLOW

        self._clear_wait(v)
        return Decision.GO

    def _occupant_heading(self, headings: Dict[Tuple[int, int], int], cell: Tuple[int, int]) -> int:
        if not self.grid.is_road_at(*cell) or not self.grid.is_occupied(*cell):
            raise NoTargetFound(f"No vehicle at {cell}")
        heading = headings.get(cell)
        if heading is None:
            raise NoTargetFound(f"No vehicle at {cell}")
        return heading

    @staticmethod
    def _wait(v: Vehicle):
        v.isWaiting = True
        v.waitingTime += 1

    @staticmethod
    def _clear_wait(v: Vehicle):
        v.isWaiting = False
        v.waitingTime = 0

    # Phase 2: move

    def move_all(self, movers: List[Vehicle], traffic: List[Vehicle]):
        """Advance every eligible vehicle.

        ``traffic`` is every vehicle still on the grid this tick; it is used
        for the speed-adaptation scan before any position changes.
        """
        occupied = set(self.grid.occupied_cells())
        planned: Dict[str, Tuple[float, float]] = {}
        for v in movers:
            v.travelTime += 1
            self.adapt_speed(v, traffic, self.start_headings)
            planned[v.id] = self.plan_target(v, occupied)

        claims = Counter(
            (round(x), round(y)) for v in movers
            for x, y in [planned[v.id]] if (round(x), round(y)) != v.cell
        )
        for v in movers:
            x, y = planned[v.id]
            new_cell = (round(x), round(y))
            if new_cell != v.cell and claims[new_cell] > 1:
                continue  # contested cell, nobody enters it this tick
            old_cell = v.cell
            v.x, v.y = x, y
            v.heading = snap_heading(v.heading)
            if new_cell != old_cell:
                self.grid.set_occupied(*old_cell, False)
                self.grid.set_occupied(*new_cell, True)

    def adapt_speed(self, v: Vehicle, traffic: Iterable[Vehicle], headings: Optional[Dict[str, int]] = None):
        """Slow down behind same-heading traffic in the forward cone, else speed up.

        ``headings`` holds other vehicles' headings from the start of the tick.
        """
        nearest = None
        for other in self._vehicles_in_cone(v, traffic, headings or {}):
            distance = math.hypot(other.x - v.x, other.y - v.y)
            if nearest is None or distance < nearest:
                nearest = distance

        if nearest is None:
            v.speed = min(v.speed + config.ACCELERATION, v.maxSpeed)
        elif nearest < config.CLOSE_DISTANCE:
            v.speed = max(v.speed - config.CLOSE_DECELERATION, config.CLOSE_SPEED_FLOOR)
        else:
            v.speed = max(v.speed - config.FAR_DECELERATION, config.FAR_SPEED_FLOOR)
        v.speed = min(max(v.speed, config.MIN_SPEED), v.maxSpeed)

    def _vehicles_in_cone(self, v: Vehicle, traffic: Iterable[Vehicle], headings: Dict[str, int]):
        hx, hy = HEADING_VECTORS[snap_heading(v.heading)]
        for other in traffic:
            if other.id == v.id or headings.get(other.id, other.heading) != v.heading:
                continue
            dx, dy = other.x - v.x, other.y - v.y
            distance = math.hypot(dx, dy)
            if distance == 0 or distance > config.CONE_RADIUS:
                continue
            cos_angle = max(-1.0, min(1.0, (dx * hx + dy * hy) / distance))
            if math.degrees(math.acos(cos_angle)) <= config.CONE_HALF_ANGLE:
                yield other

    def plan_target(self, v: Vehicle, occupied: Set[Tuple[int, int]]) -> Tuple[float, float]:
        """Position the vehicle would reach this tick, given tick-start occupancy."""
        heading = snap_heading(v.heading)
        cx, cy = v.cell
        if is_vertical(heading):
            lane, along = lane_coordinate(heading, cx), v.y
            start = (lane, cy)
        else:
            lane, along = lane_coordinate(heading, cy), v.x
            start = (cx, lane)

        def position(a: float) -> Tuple[float, float]:
            return (float(lane), a) if is_vertical(heading) else (a, float(lane))

        if start != (cx, cy) and (not self.grid.is_road_at(*start) or start in occupied):
            return v.x, v.y
        if not self.grid.is_road_at(*self.grid.ahead(*start, heading)):
            return position(along)

        sign = 1 if heading in (0, 90) else -1
        desired = along + sign * v.speed
        current = start[1] if is_vertical(heading) else start[0]
        last_free = current
        for step in range(1, abs(round(desired) - current) + 1):
            cell = self.grid.ahead(*start, heading, step)
            if not self._can_enter(cell, self.grid.ahead(*start, heading, step - 1), heading, occupied):
                break
            last_free = current + sign * step
        else:
            return position(desired)

        # Stop on the last free cell without ever moving backwards
        if sign > 0:
            return position(max(along, float(last_free)))
        return position(min(along, float(last_free)))

    def _can_enter(self, cell, previous, heading: int, occupied: Set[Tuple[int, int]]) -> bool:
        if not self.grid.is_road_at(*cell) or cell in occupied:
            return False
        entering = self.grid.is_intersection(*cell) and not self.grid.is_intersection(*previous)
        if entering:
            try:
                return self.signals.light_for(*cell, heading) != SignalState.RED
            except NoTargetFound:
                return True
        return True
