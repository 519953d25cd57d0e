import networkx as nx
from typing import Iterable, List, Tuple

def intersection_id(x: int, y: int) -> str:
    return f"I-{x}_{y}"

class RoadNetwork:
    """Intersection-level view of the grid: one node per intersection center,
    one directed edge per road segment joining axis-adjacent centers."""

    def __init__(self):
        self.graph = nx.DiGraph()

    def add_intersection(self, intersection_id: str, pos: Tuple[int, int]):
        self.graph.add_node(intersection_id, pos=pos, type="intersection")

    def add_road(self, u: str, v: str, length: float, axis: str):
        self.graph.add_edge(u, v, length=length, axis=axis)

    def get_node_pos(self, u: str) -> Tuple[int, int]:
        return self.graph.nodes[u].get('pos', (0, 0))

    def intersections(self) -> List[str]:
        return sorted(self.graph.nodes, key=lambda n: self.get_node_pos(n)[::-1])

    def neighbors(self, u: str) -> List[str]:
        return sorted(self.graph.successors(u))

    @classmethod
    def from_centers(cls, centers: Iterable[Tuple[int, int]], spacing: int) -> "RoadNetwork":
        network = cls()
        centers = set(centers)
        for x, y in centers:
            network.add_intersection(intersection_id(x, y), (x, y))
        for x, y in centers:
            for nx_, ny, axis in ((x + spacing, y, "horizontal"), (x, y + spacing, "vertical")):
                if (nx_, ny) in centers:
                    u, v = intersection_id(x, y), intersection_id(nx_, ny)
                    network.add_road(u, v, float(spacing), axis)
                    network.add_road(v, u, float(spacing), axis)
        return network
