from gridtraffic.kernel.simulation_kernel import SimulationKernel

# No random vehicles and signals that never flip during a test
QUIET_OPTIONS = {
    "initial-car-density": 0,
    "minimum-traffic-light-cycle-time": 1000,
    "maximum-traffic-light-cycle-time": 1000,
    "max-car-speed": 1,
}

def quiet_kernel(seed: int = 7, **overrides) -> SimulationKernel:
    options = dict(QUIET_OPTIONS)
    options.update(overrides)
    kernel = SimulationKernel()
    kernel.initialize(options, seed=seed)
    return kernel

def relocate(kernel: SimulationKernel, vehicle, x: int, y: int):
    grid = kernel.state.grid
    grid.set_occupied(*vehicle.cell, False)
    vehicle.x, vehicle.y = float(x), float(y)
    grid.set_occupied(x, y, True)
