from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel

class SignalState(str, Enum):
    RED = "RED"
    GREEN = "GREEN"

class Phase(str, Enum):
    VERTICAL = "VERTICAL"
    HORIZONTAL = "HORIZONTAL"

class Direction(str, Enum):
    NONE = "none"
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    BOTH = "both"

class Approach(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

class Cell(BaseModel):
    x: int
    y: int
    isRoad: bool = False
    isIntersection: bool = False
    direction: Direction = Direction.NONE
    occupied: bool = False

class SignalLight(BaseModel):
    intersectionId: str
    approach: Approach
    x: int  # Cell just before the intersection on this approach
    y: int
    state: SignalState = SignalState.RED

class IntersectionController(BaseModel):
    id: str  # e.g., "I-5_-10"
    x: int   # Center cell
    y: int
    phase: Phase = Phase.VERTICAL
    timer: int = 0
    threshold: int = 1
    flips: int = 0

class Vehicle(BaseModel):
    id: str
    x: float
    y: float
    heading: int  # 0 north, 90 east, 180 south, 270 west
    destination: Tuple[int, int]
    speed: float
    maxSpeed: float
    travelTime: int = 0
    waitingTime: int = 0
    isWaiting: bool = False

    @property
    def cell(self) -> Tuple[int, int]:
        return round(self.x), round(self.y)

class MetricsSample(BaseModel):
    tick: int
    congestionLevel: int
    throughput: float
    activeVehicles: int
    completedTrips: int
    averageTravelTime: float

# Snapshot Models

class VehicleView(BaseModel):
    id: str
    x: float
    y: float
    heading: int
    speed: float
    isWaiting: bool

class GridState(BaseModel):
    tick: int
    idle: bool
    vehicles: List[VehicleView]
    lights: List[SignalLight]
    metrics: Optional[MetricsSample] = None

class IntersectionSummary(BaseModel):
    id: str
    x: int
    y: int
    phase: Phase
    neighbors: List[str] = []

class SignalDetails(BaseModel):
    intersectionId: str
    currentPhase: Phase
    timer: int
    threshold: int
    timerRemaining: int
    lights: List[SignalLight]

class ResetRequest(BaseModel):
    seed: Optional[int] = None
    options: dict = {}
