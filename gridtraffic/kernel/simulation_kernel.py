import logging
import random
from typing import List, Optional, Union

from gridtraffic.domain import config
from gridtraffic.domain.config import SimulationConfig
from gridtraffic.domain.errors import InvalidConfiguration
from gridtraffic.domain.grid import Grid
from gridtraffic.domain.models import (
    Cell, GridState, IntersectionSummary, SignalDetails, Vehicle
)
from gridtraffic.domain.state import SimulationState
from gridtraffic.kernel.command_queue import CommandQueue
from gridtraffic.kernel.commands import Command
from gridtraffic.kernel.snapshot_builder import SnapshotBuilder
from gridtraffic.systems.metrics import MetricsCollector
from gridtraffic.systems.signal_system import SignalSystem
from gridtraffic.systems.vehicle_system import WAITING_DECISIONS, Decision, VehicleSystem

logger = logging.getLogger(__name__)

class SimulationKernel:
    def __init__(self):
        self.state = SimulationState()
        self.config = SimulationConfig()
        self.seed = config.DEFAULT_SEED
        self.command_queue = CommandQueue()
        self.snapshots = SnapshotBuilder()
        self.signal_system: Optional[SignalSystem] = None
        self.vehicle_system: Optional[VehicleSystem] = None
        self.metrics = MetricsCollector()
        self.initialized = False

    def initialize(self, sim_config: Union[SimulationConfig, dict, None] = None, seed: int = config.DEFAULT_SEED):
        if isinstance(sim_config, dict):
            sim_config = SimulationConfig.from_options(sim_config)
        self.config = sim_config or SimulationConfig()
        self.seed = seed

        # Independent streams for signals and placement, both derived from the seed
        rng = random.Random(seed)
        signal_rng = random.Random(rng.getrandbits(64))
        placement_rng = random.Random(rng.getrandbits(64))

        grid = Grid.from_config(self.config)
        min_cycle, max_cycle = self.config.cycle_bounds
        self.state = SimulationState(tick_id=0, vehicles=[], grid=grid)
        self.signal_system = SignalSystem(grid, signal_rng, min_cycle, max_cycle)
        self.vehicle_system = VehicleSystem(grid, self.signal_system)
        self.metrics = MetricsCollector()
        self.initialized = True

        self._initialize_vehicles(placement_rng)
        logger.info("Kernel Initialized (Seed: %s, intersections: %d, vehicles: %d)",
                    seed, len(self.signal_system.controllers), len(self.state.vehicles))

    def reset(self):
        self.initialize(self.config, seed=self.seed)

    def _initialize_vehicles(self, rng: random.Random):
        candidates = self.state.grid.spawnable_cells()
        count = round(len(candidates) * self.config.initial_car_density / 100.0)
        for cell in rng.sample(candidates, count):
            # Either end of the travel axis; a trip toward the rear edge needs a U-turn
            self.place_vehicle(cell.x, cell.y, destination_ahead=rng.random() < 0.5)

    def place_vehicle(self, x: int, y: int, heading: Optional[int] = None, speed: Optional[float] = None,
                      destination_ahead: bool = True) -> Vehicle:
        """Put a vehicle on an empty road cell. Only allowed before the first tick.

        The destination is the interior edge ahead of the vehicle, or the one
        behind it when ``destination_ahead`` is False.
        """
        if not self.initialized:
            self.initialize()
        if self.state.tick_id != 0:
            raise InvalidConfiguration("Vehicles can only be placed before the first tick")

        grid = self.state.grid
        cell = grid.cell_at(x, y)
        if not cell.isRoad or cell.isIntersection:
            raise InvalidConfiguration(f"({x}, {y}) is not a spawnable road cell")
        if cell.occupied:
            raise InvalidConfiguration(f"({x}, {y}) is already occupied")

        if heading is None:
            heading = grid.heading_for_cell(x, y)
        if heading not in (0, 90, 180, 270):
            raise InvalidConfiguration(f"Heading {heading} is not axis-aligned")
        max_speed = self.config.max_car_speed
        if speed is None:
            speed = min(1.0, max_speed)

        vehicle = Vehicle(
            id=f"v-{self.metrics.total_spawned}",
            x=float(x),
            y=float(y),
            heading=heading,
            destination=grid.destination_for(x, y, heading if destination_ahead else (heading + 180) % 360),
            speed=min(max(speed, config.MIN_SPEED), max_speed),
            maxSpeed=max_speed,
        )
        grid.set_occupied(x, y, True)
        self.state.vehicles.append(vehicle)
        self.metrics.record_spawn()
        return vehicle

    def queue_command(self, command: Command):
        self.command_queue.add(command)

    @property
    def idle(self) -> bool:
        return self.initialized and not self.state.vehicles

    def run_tick(self) -> bool:
        """Advance the world one tick. Returns False when there was nothing to do."""
        if not self.initialized:
            self.initialize()

        # 1. Process Commands
        for cmd in self.command_queue.drain():
            cmd.execute(self)

        if self.idle:
            return False

        grid = self.state.grid
        grid.begin_tick()

        # 2. Signals
        self.signal_system.update()

        # 3. Decide, every vehicle against the same tick-start world
        vehicles = self.state.vehicles
        decisions = self.vehicle_system.decide_all(vehicles)
        arrivals = [v for v in vehicles if decisions[v.id] == Decision.ARRIVE]
        remaining = [v for v in vehicles if decisions[v.id] != Decision.ARRIVE]
        movers = [v for v in remaining if decisions[v.id] not in WAITING_DECISIONS]

        # 4. Move
        self.vehicle_system.move_all(movers, remaining)
        for v in arrivals:
            self._retire(v)
        self.state.vehicles = remaining

        # 5. Time Advance and metrics
        self.state.tick_id += 1
        waiting = sum(1 for v in remaining if v.isWaiting)
        self.metrics.collect(self.state.tick_id, waiting, len(remaining))

        if self.idle:
            logger.info("All vehicles arrived after %d ticks, simulation idle", self.state.tick_id)
        return True

    def _retire(self, v: Vehicle):
        self.state.grid.set_occupied(*v.cell, False)
        self.metrics.record_arrival(v.travelTime)
        logger.debug("%s arrived at %s after %d ticks", v.id, v.destination, v.travelTime)

    def run(self, max_ticks: int) -> int:
        """Run until idle or ``max_ticks`` ticks have elapsed. Returns ticks run."""
        ticks = 0
        while ticks < max_ticks and self.run_tick():
            ticks += 1
        return ticks

    # Read-only views

    def get_state(self) -> GridState:
        if not self.initialized:
            self.initialize()
        return self.snapshots.build(self)

    def get_cells(self) -> List[Cell]:
        if not self.initialized:
            self.initialize()
        return self.snapshots.cells(self)

    def get_intersections(self) -> List[IntersectionSummary]:
        if not self.initialized:
            self.initialize()
        network = self.state.grid.road_network
        return [
            IntersectionSummary(
                id=c.state.id, x=c.state.x, y=c.state.y, phase=c.state.phase,
                neighbors=network.neighbors(c.state.id),
            )
            for c in self.signal_system.controllers.values()
        ]

    def get_intersection_details(self, intersection_id: str) -> Optional[SignalDetails]:
        if not self.initialized:
            self.initialize()
        controller = self.signal_system.controllers.get(intersection_id)
        if not controller:
            return None
        state = controller.state
        return SignalDetails(
            intersectionId=state.id,
            currentPhase=state.phase,
            timer=state.timer,
            threshold=state.threshold,
            timerRemaining=max(0, state.threshold - state.timer),
            lights=[light.model_copy() for light in self.signal_system.lights[state.id].values()],
        )
