import asyncio
import time
from fastapi import FastAPI, HTTPException
from typing import List
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from gridtraffic.domain.config import SimulationConfig
from gridtraffic.domain.errors import InvalidConfiguration
from gridtraffic.domain.models import (
    Cell, GridState, IntersectionSummary, MetricsSample, ResetRequest, SignalDetails
)
from gridtraffic.kernel.commands import ResetSimulationCommand
from gridtraffic.kernel.simulation_kernel import SimulationKernel

TICKS_PER_SECOND = 10

# Initialize Kernel
kernel = SimulationKernel()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Start the simulation loop
    kernel.initialize()
    loop_task = asyncio.create_task(run_simulation())
    yield
    # Shutdown
    loop_task.cancel()

app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

async def run_simulation():
    """Ticks the kernel at a fixed rate; an idle kernel keeps polling for commands."""
    dt = 1.0 / TICKS_PER_SECOND

    while True:
        start_time = time.time()
        kernel.run_tick()
        elapsed = time.time() - start_time
        await asyncio.sleep(max(0.0, dt - elapsed))

@app.get("/api/grid/state", response_model=GridState)
async def get_grid_state():
    """Vehicles, lights and the latest metrics sample"""
    return kernel.get_state()

@app.get("/api/grid/cells", response_model=List[Cell])
async def get_grid_cells():
    """Road/intersection classification of every cell"""
    return kernel.get_cells()

@app.get("/api/metrics", response_model=List[MetricsSample])
async def get_metrics():
    """Per-tick congestion and throughput series"""
    return kernel.metrics.samples

@app.get("/api/intersections", response_model=List[IntersectionSummary])
async def get_intersections():
    return kernel.get_intersections()

@app.get("/api/signals/{intersection_id}", response_model=SignalDetails)
async def get_signal_state(intersection_id: str):
    details = kernel.get_intersection_details(intersection_id)
    if not details:
        raise HTTPException(status_code=404, detail="Intersection not found")
    return details

@app.post("/api/simulation/reset")
async def reset_simulation(request: ResetRequest):
    """Queues a reset; the new world replaces the old one at the next tick."""
    options = None
    if request.options:
        try:
            options = SimulationConfig.from_options(request.options)
        except InvalidConfiguration as e:
            raise HTTPException(status_code=422, detail=str(e))
    kernel.queue_command(ResetSimulationCommand(options, request.seed))
    return {"status": "Reset queued", "seed": request.seed if request.seed is not None else kernel.seed}

@app.get("/")
def read_root():
    return {"status": "gridtraffic running", "tick": kernel.state.tick_id, "idle": kernel.idle}
