import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ttp_ga.data import load_instance
from ttp_ga.evaluation import NonDominatedSet, ThiefEvaluator, tour_length
from ttp_ga.evolutionary import EvolutionConfig, EvolutionEngine
from ttp_ga.exceptions import ConfigurationError, InstanceFormatError
from ttp_ga.operators.genome import Candidate


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def front_to_state(front: List[Candidate]) -> List[dict]:
    return [
        {
            "time": c.time,
            "profit": c.profit,
            "route": list(c.route),
            "packing_plan": [int(z) for z in c.packing_plan],
        }
        for c in front
    ]


def _time_budget(limit: Optional[float]):
    if limit is None:
        return None
    deadline = time.perf_counter() + limit
    return lambda epoch, population: time.perf_counter() >= deadline


def run(args) -> None:
    t0 = time.perf_counter()
    path = Path(args.instance)
    log(f"loading instance from {path}")
    problem = load_instance(path)
    log(
        f"loaded {problem.name}: {problem.num_cities} cities, {problem.num_items} items, "
        f"capacity={problem.capacity:g} in {time.perf_counter() - t0:.2f}s"
    )
    cfg = EvolutionConfig(
        population_size=args.population_size,
        epochs=args.epochs,
        tournament_size=args.tournament_size,
        mutation_rate=args.mutation_rate,
        crossover_packing=not args.no_packing_crossover,
        repair=not args.no_repair,
        workers=args.workers,
        random_seed=args.seed,
    )
    engine = EvolutionEngine(cfg, ThiefEvaluator(problem), should_stop=_time_budget(args.time_limit))
    front = engine.run()
    archive = NonDominatedSet()
    archive.update(front)
    log(f"finished {engine.epoch} epochs in {time.perf_counter() - t0:.2f}s; front size {len(archive)}")
    for c in archive:
        dist = tour_length(problem.graph, c.route)
        print(f"time={c.time:12.2f} profit={c.profit:12.2f} distance={dist:10.0f} items={len(c.packed_items)}")
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps({"instance": problem.name, "front": front_to_state(list(archive))}, indent=2))
        log(f"front written to {out}")


def info(args) -> None:
    problem = load_instance(Path(args.instance))
    print(f"name:        {problem.name}")
    print(f"cities:      {problem.num_cities}")
    print(f"items:       {problem.num_items}")
    print(f"capacity:    {problem.capacity:g}")
    print(f"speed:       [{problem.min_speed:g}, {problem.max_speed:g}]")
    print(f"edge weight: {problem.edge_weight_type}")
    print(f"renting:     {problem.renting_ratio:g}")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="TTP NTGA CLI")
    parser.add_argument("--log-level", default="INFO", help="loguru level for engine logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the evolutionary search on one instance")
    run_parser.add_argument("instance")
    run_parser.add_argument("--population-size", type=int, default=100)
    run_parser.add_argument("--epochs", type=int, default=1000)
    run_parser.add_argument("--tournament-size", type=int, default=8)
    run_parser.add_argument("--mutation-rate", type=float, default=0.1)
    run_parser.add_argument("--no-packing-crossover", action="store_true")
    run_parser.add_argument("--no-repair", action="store_true", help="Reject over-capacity plans instead of repairing")
    run_parser.add_argument("--workers", type=int, default=1)
    run_parser.add_argument("--seed", type=int, default=123)
    run_parser.add_argument("--time-limit", type=float, default=None, help="Stop after this many seconds")
    run_parser.add_argument("--output", default=None, help="Write the final front as JSON")
    run_parser.set_defaults(func=run)

    info_parser = subparsers.add_parser("info", help="Print instance metadata")
    info_parser.add_argument("instance")
    info_parser.set_defaults(func=info)

    args = parser.parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())
    try:
        args.func(args)
    except (ConfigurationError, InstanceFormatError) as exc:
        parser.exit(2, f"error: {exc}\n")


if __name__ == "__main__":
    main()
