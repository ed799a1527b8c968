import random

from ttp_ga.data import random_instance
from ttp_ga.evaluation import NonDominatedSet, ThiefEvaluator
from ttp_ga.evolutionary import EvolutionConfig, EvolutionEngine


def main():
    problem = random_instance(random.Random(7), num_cities=20, items_per_city=2, capacity_fraction=0.3)
    cfg = EvolutionConfig(
        population_size=40,
        epochs=50,
        tournament_size=4,
        mutation_rate=0.05,
    )
    engine = EvolutionEngine(cfg, ThiefEvaluator(problem))
    archive = NonDominatedSet()
    archive.update(engine.run())
    for c in archive:
        print(f"time={c.time:.2f} profit={c.profit:.2f} items={len(c.packed_items)}")


if __name__ == "__main__":
    main()
