# Simulation Configuration
import logging
import math

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from gridtraffic.domain.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

# Grid Settings
MIN_PXCOR = -18
MAX_PXCOR = 18
MIN_PYCOR = -18
MAX_PYCOR = 18
GRID_MARGIN = 2          # Cells left unused on every side of the road network
BLOCK_SIZE = 5           # Lane pattern period on both axes

# Lane offsets inside a two-cell road (x for vertical roads, y for horizontal)
LANE_OFFSETS = {
    0: 1,    # north-bound
    180: 0,  # south-bound
    90: 0,   # east-bound
    270: 1,  # west-bound
}

# Signal Timings (ticks)
MIN_CYCLE_TIME = 10
MAX_CYCLE_TIME = 20

# Vehicle Physics
INITIAL_CAR_DENSITY = 10.0   # percent of spawnable road cells
MAX_CAR_SPEED = 1.0
MIN_SPEED = 0.1
ACCELERATION = 0.3
CLOSE_DECELERATION = 0.3
CLOSE_SPEED_FLOOR = 0.2
FAR_DECELERATION = 0.2
FAR_SPEED_FLOOR = 0.5

# Traffic Rules
CONE_RADIUS = 2.0
CONE_HALF_ANGLE = 20.0       # degrees
CLOSE_DISTANCE = 2.0
ARRIVAL_TOLERANCE = 1.0
GRIDLOCK_WAIT_LIMIT = 10

DEFAULT_SEED = 42


class SimulationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    initial_car_density: float = Field(
        INITIAL_CAR_DENSITY, ge=0.0, le=100.0, alias="initial-car-density"
    )
    min_cycle_time: float = Field(MIN_CYCLE_TIME, alias="minimum-traffic-light-cycle-time")
    max_cycle_time: float = Field(MAX_CYCLE_TIME, alias="maximum-traffic-light-cycle-time")
    max_car_speed: float = Field(MAX_CAR_SPEED, ge=MIN_SPEED, alias="max-car-speed")

    min_pxcor: int = MIN_PXCOR
    max_pxcor: int = MAX_PXCOR
    min_pycor: int = MIN_PYCOR
    max_pycor: int = MAX_PYCOR

    @model_validator(mode="after")
    def check_extent(self):
        # The interior must hold at least one lane pair on each axis
        if self.max_pxcor - self.min_pxcor < 2 * GRID_MARGIN + 1:
            raise ValueError("grid is too narrow for a road network")
        if self.max_pycor - self.min_pycor < 2 * GRID_MARGIN + 1:
            raise ValueError("grid is too short for a road network")
        return self

    @property
    def cycle_bounds(self):
        """Integer (min, max) used for threshold sampling, clamped so 1 <= min <= max."""
        min_cycle = max(1, math.floor(self.min_cycle_time))
        max_cycle = max(min_cycle, math.floor(self.max_cycle_time))
        return min_cycle, max_cycle

    @classmethod
    def from_options(cls, options: dict) -> "SimulationConfig":
        try:
            config = cls.model_validate(options)
        except ValidationError as e:
            raise InvalidConfiguration(str(e)) from e

        min_cycle, max_cycle = config.cycle_bounds
        if (min_cycle, max_cycle) != (config.min_cycle_time, config.max_cycle_time):
            logger.warning(
                "Cycle bounds (%s, %s) clamped to (%d, %d)",
                config.min_cycle_time, config.max_cycle_time, min_cycle, max_cycle,
            )
        return config
