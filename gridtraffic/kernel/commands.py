from abc import ABC, abstractmethod
from typing import Any, Optional

class Command(ABC):
    @abstractmethod
    def execute(self, kernel: Any):
        pass

class ResetSimulationCommand(Command):
    def __init__(self, options: Optional[dict] = None, seed: Optional[int] = None):
        self.options = options
        self.seed = seed

    def execute(self, kernel: Any):
        sim_config = kernel.config if self.options is None else self.options
        seed = kernel.seed if self.seed is None else self.seed
        kernel.initialize(sim_config, seed=seed)
