import json
import logging
import time
from gridtraffic.domain import config
from gridtraffic.kernel.simulation_kernel import SimulationKernel

logger = logging.getLogger(__name__)

DEFAULT_DURATION_TICKS = 500

def run_headless_experiment(config_path: str, output_path: str):
    with open(config_path) as f:
        experiment = json.load(f)

    seed = experiment.pop("seed", config.DEFAULT_SEED)
    duration_ticks = experiment.pop("ticks", DEFAULT_DURATION_TICKS)

    kernel = SimulationKernel()
    kernel.initialize(experiment, seed=seed)

    start_time = time.time()
    ticks = kernel.run(duration_ticks)
    end_time = time.time()
    logger.info("Experiment finished in %.4fs (%d ticks, idle: %s)", end_time - start_time, ticks, kernel.idle)

    results = {
        "seed": seed,
        "ticks": ticks,
        "completedTrips": kernel.metrics.completed_trips,
        "averageTravelTime": kernel.metrics.average_travel_time,
        "series": [sample.model_dump() for sample in kernel.metrics.samples],
    }
    with open(output_path, 'w') as f:
        json.dump(results, f, indent=2)
    return results

if __name__ == "__main__":
    import sys
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    if len(sys.argv) > 2:
        run_headless_experiment(sys.argv[1], sys.argv[2])
    else:
        print("Usage: python -m gridtraffic.experiments.run_experiment <config.json> <output.json>")
