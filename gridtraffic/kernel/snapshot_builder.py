from typing import Any, List

from gridtraffic.domain.models import Cell, GridState, VehicleView

class SnapshotBuilder:
    """Read-only views of the kernel for renderers and the HTTP layer."""

    def build(self, kernel: Any) -> GridState:
        return GridState(
            tick=kernel.state.tick_id,
            idle=kernel.idle,
            vehicles=[
                VehicleView(
                    id=v.id,
                    x=v.x,
                    y=v.y,
                    heading=v.heading,
                    speed=v.speed,
                    isWaiting=v.isWaiting,
                )
                for v in kernel.state.vehicles
            ],
            lights=[light.model_copy() for light in kernel.signal_system.all_lights()],
            metrics=kernel.metrics.latest(),
        )

    def cells(self, kernel: Any) -> List[Cell]:
        return [cell.model_copy() for cell in kernel.state.grid.cells.values()]
