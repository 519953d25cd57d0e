from typing import List, Tuple

from gridtraffic.domain.models import MetricsSample

class MetricsCollector:
    def __init__(self):
        self.samples: List[MetricsSample] = []
        self.total_spawned = 0
        self.completed_trips = 0
        self.travel_time_sum = 0

    def record_spawn(self, count: int = 1):
        self.total_spawned += count

    def record_arrival(self, travel_time: int):
        self.completed_trips += 1
        self.travel_time_sum += travel_time

    @property
    def average_travel_time(self) -> float:
        if self.completed_trips == 0:
            return 0.0
        return self.travel_time_sum / self.completed_trips

    def throughput(self, tick: int) -> float:
        if tick == 0:
            return 0.0
        return self.completed_trips / tick

    def collect(self, tick: int, waiting: int, active: int) -> MetricsSample:
        sample = MetricsSample(
            tick=tick,
            congestionLevel=waiting,
            throughput=self.throughput(tick),
            activeVehicles=active,
            completedTrips=self.completed_trips,
            averageTravelTime=self.average_travel_time,
        )
        self.samples.append(sample)
        return sample

    def latest(self):
        return self.samples[-1] if self.samples else None

    def series(self) -> List[Tuple[int, int, float]]:
        return [(s.tick, s.congestionLevel, s.throughput) for s in self.samples]
