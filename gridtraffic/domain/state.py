from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from gridtraffic.domain.models import Vehicle
from gridtraffic.domain.grid import Grid

class SimulationState(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    tick_id: int = 0
    vehicles: List[Vehicle] = []

    # Cells and occupancy flags
    grid: Optional[Grid] = None
