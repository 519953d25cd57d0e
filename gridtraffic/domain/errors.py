class SimulationError(Exception):
    """Base class for every error raised by the simulation core."""


class InvalidConfiguration(SimulationError, ValueError):
    pass


class OutOfBounds(SimulationError, LookupError):
    def __init__(self, x: int, y: int):
        super().__init__(f"Cell ({x}, {y}) is outside the grid")
        self.x = x
        self.y = y


class NoTargetFound(SimulationError, LookupError):
    """A controlling light or a leading vehicle could not be resolved.

    Callers treat this as "the rule does not apply".
    """
