import logging
from collections import Counter
from typing import Dict, Iterator, List, Tuple

from gridtraffic.domain import config
from gridtraffic.domain.errors import NoTargetFound, OutOfBounds
from gridtraffic.domain.graph import RoadNetwork
from gridtraffic.domain.models import Cell, Direction

logger = logging.getLogger(__name__)

HEADING_VECTORS: Dict[int, Tuple[int, int]] = {
    0: (0, 1),
    90: (1, 0),
    180: (0, -1),
    270: (-1, 0),
}

def is_vertical(heading: int) -> bool:
    return heading in (0, 180)

def lane_coordinate(heading: int, lateral: int) -> int:
    """Snap a lateral coordinate onto the lane used by ``heading``."""
    base = lateral - lateral % config.BLOCK_SIZE
    return base + config.LANE_OFFSETS[heading]

class Grid:
    """Static road lattice plus the mutable per-cell ``occupied`` flags."""

    def __init__(self, min_pxcor: int, max_pxcor: int, min_pycor: int, max_pycor: int):
        self.min_pxcor = min_pxcor
        self.max_pxcor = max_pxcor
        self.min_pycor = min_pycor
        self.max_pycor = max_pycor
        self.cells: Dict[Tuple[int, int], Cell] = {}
        self.occupancy_writes: Counter = Counter()
        self._build()
        self.road_network = RoadNetwork.from_centers(self.intersection_centers(), config.BLOCK_SIZE)

    @classmethod
    def from_config(cls, sim_config: config.SimulationConfig) -> "Grid":
        return cls(sim_config.min_pxcor, sim_config.max_pxcor,
                   sim_config.min_pycor, sim_config.max_pycor)

    @property
    def interior_bounds(self) -> Tuple[int, int, int, int]:
        m = config.GRID_MARGIN
        return (self.min_pxcor + m, self.max_pxcor - m,
                self.min_pycor + m, self.max_pycor - m)

    def _build(self):
        x_lo, x_hi, y_lo, y_hi = self.interior_bounds
        for y in range(self.min_pycor, self.max_pycor + 1):
            for x in range(self.min_pxcor, self.max_pxcor + 1):
                cell = Cell(x=x, y=y)
                if x_lo <= x <= x_hi and y_lo <= y <= y_hi:
                    on_row = y % config.BLOCK_SIZE in (0, 1)
                    on_column = x % config.BLOCK_SIZE in (0, 1)
                    if on_row and on_column:
                        cell.isRoad = True
                        cell.isIntersection = True
                        cell.direction = Direction.BOTH
                    elif on_row:
                        cell.isRoad = True
                        cell.direction = Direction.HORIZONTAL
                    elif on_column:
                        cell.isRoad = True
                        cell.direction = Direction.VERTICAL
                self.cells[(x, y)] = cell
        logger.debug("Built %dx%d grid with %d road cells",
                     self.max_pxcor - self.min_pxcor + 1,
                     self.max_pycor - self.min_pycor + 1,
                     len(self.road_cells()))

    # Queries

    def in_bounds(self, x: int, y: int) -> bool:
        return (x, y) in self.cells

    def cell_at(self, x: int, y: int) -> Cell:
        cell = self.cells.get((x, y))
        if cell is None:
            raise OutOfBounds(x, y)
        return cell

    def is_road(self, x: int, y: int) -> bool:
        return self.cell_at(x, y).isRoad

    def is_intersection(self, x: int, y: int) -> bool:
        return self.cell_at(x, y).isIntersection

    def direction(self, x: int, y: int) -> Direction:
        return self.cell_at(x, y).direction

    def is_occupied(self, x: int, y: int) -> bool:
        return self.cell_at(x, y).occupied

    def road_cells(self) -> List[Cell]:
        return [c for c in self.cells.values() if c.isRoad]

    def spawnable_cells(self) -> List[Cell]:
        return [c for c in self.cells.values() if c.isRoad and not c.isIntersection]

    def intersection_centers(self) -> List[Tuple[int, int]]:
        return [
            (c.x, c.y) for c in self.cells.values()
            if c.isIntersection and c.x % config.BLOCK_SIZE == 0 and c.y % config.BLOCK_SIZE == 0
        ]

    def center_of(self, x: int, y: int) -> Tuple[int, int]:
        """Center cell of the intersection containing (x, y)."""
        if not self.is_intersection(x, y):
            raise NoTargetFound(f"({x}, {y}) is not an intersection cell")
        cx, cy = x - x % config.BLOCK_SIZE, y - y % config.BLOCK_SIZE
        if not self.in_bounds(cx, cy) or not self.cell_at(cx, cy).isIntersection:
            raise NoTargetFound(f"No intersection center for ({x}, {y})")
        return cx, cy

    def ahead(self, x: int, y: int, heading: int, steps: int = 1) -> Tuple[int, int]:
        dx, dy = HEADING_VECTORS[heading]
        return x + dx * steps, y + dy * steps

    def is_road_at(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.cells[(x, y)].isRoad

    def edge_coordinate(self, heading: int) -> int:
        """Last interior coordinate along the travel axis of ``heading``."""
        x_lo, x_hi, y_lo, y_hi = self.interior_bounds
        return {0: y_hi, 90: x_hi, 180: y_lo, 270: x_lo}[heading]

    def is_facing_edge(self, x: int, y: int, heading: int) -> bool:
        along = y if is_vertical(heading) else x
        return along == self.edge_coordinate(heading)

    def destination_for(self, x: int, y: int, heading: int) -> Tuple[int, int]:
        edge = self.edge_coordinate(heading)
        if is_vertical(heading):
            return lane_coordinate(heading, x), edge
        return edge, lane_coordinate(heading, y)

    def heading_for_cell(self, x: int, y: int) -> int:
        """Travel heading implied by the lane offset of a non-intersection road cell."""
        direction = self.direction(x, y)
        if direction == Direction.VERTICAL:
            return 0 if x % config.BLOCK_SIZE == config.LANE_OFFSETS[0] else 180
        if direction == Direction.HORIZONTAL:
            return 90 if y % config.BLOCK_SIZE == config.LANE_OFFSETS[90] else 270
        raise NoTargetFound(f"({x}, {y}) has no single travel direction")

    # Occupancy

    def begin_tick(self):
        self.occupancy_writes.clear()

    def set_occupied(self, x: int, y: int, value: bool):
        self.cell_at(x, y).occupied = value
        self.occupancy_writes[(x, y)] += 1

    def occupied_cells(self) -> Iterator[Tuple[int, int]]:
        return (key for key, c in self.cells.items() if c.occupied)
