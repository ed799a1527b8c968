import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set

from loguru import logger

from .evaluation import summarize_front
from .exceptions import ConfigurationError, EvolutionError, InvariantViolation
from .operators.base import Evaluator
from .operators.genome import Candidate, Genotype
from .operators.variation import Mutator, Recombiner
from .ranking import DominanceRanker, Relation, pareto_relation
from .selection import TournamentSelector


@dataclass
class EvolutionConfig:
    population_size: int = 100
    epochs: int = 1000
    tournament_size: int = 8
    mutation_rate: float = 0.1
    crossover_packing: bool = True
    repair: bool = True
    clone_suppression: bool = True
    # Consecutive rejected draws (infeasible or clone) tolerated while filling one slot.
    max_attempts: int = 1000
    workers: int = 1
    random_seed: Optional[int] = 123

    def __post_init__(self):
        if self.population_size < 1:
            raise ConfigurationError(f"population_size must be >= 1, got {self.population_size}")
        if self.epochs < 0:
            raise ConfigurationError(f"epochs must be >= 0, got {self.epochs}")
        if not 1 <= self.tournament_size <= self.population_size:
            raise ConfigurationError(
                f"tournament_size must be in [1, population_size={self.population_size}], "
                f"got {self.tournament_size}"
            )
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigurationError(f"mutation_rate must be in [0, 1], got {self.mutation_rate}")
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")


class Phase(Enum):
    INITIALIZING = "initializing"
    RANKING = "ranking"
    BREEDING = "breeding"
    REPLACING = "replacing"
    TERMINATED = "terminated"


StopCheck = Callable[[int, Sequence[Candidate]], bool]


class EvolutionEngine:
    """
    Non-dominated tournament GA with full generational replacement.

    Each epoch ranks the current population, breeds a clone-free pool of
    ``population_size`` offspring (tournament -> order crossover -> mutation)
    and replaces the population with it. ``run`` returns the rank-0 front.
    """

    def __init__(
        self,
        config: EvolutionConfig,
        evaluator: Evaluator,
        relation: Relation = pareto_relation,
        rng: Optional[random.Random] = None,
        should_stop: Optional[StopCheck] = None,
    ):
        self.cfg = config
        self.evaluator = evaluator
        self.rng = rng or random.Random(config.random_seed)
        self.ranker = DominanceRanker(relation)
        self.selector = TournamentSelector(config.tournament_size)
        self.recombiner = Recombiner(evaluator, config.crossover_packing, config.repair)
        self.mutator = Mutator(evaluator, config.mutation_rate, config.repair)
        self.should_stop = should_stop
        self.population: List[Candidate] = []
        self.fronts: List[List[Candidate]] = []
        self.epoch = 0
        self.phase = Phase.INITIALIZING

    def _check_attempts(self, rejected: int, what: str) -> None:
        if rejected >= self.cfg.max_attempts:
            raise EvolutionError(
                f"{rejected} consecutive {what} draws rejected at epoch {self.epoch}; "
                "the instance may be too small for the population or infeasible without repair"
            )

    def initialize(self) -> List[Candidate]:
        self.phase = Phase.INITIALIZING
        population: List[Candidate] = []
        rejected = 0
        while len(population) < self.cfg.population_size:
            g = Genotype.random(self.rng, self.evaluator.num_cities, self.evaluator.num_items)
            candidate = self.evaluator.evaluate(g.route, g.packing_plan, self.cfg.repair)
            if candidate is None:
                rejected += 1
                self._check_attempts(rejected, "initialization")
                continue
            rejected = 0
            population.append(candidate)
        self.population = population
        self.fronts = []
        return population

    def rank(self) -> List[List[Candidate]]:
        self.phase = Phase.RANKING
        self.fronts = self.ranker.rank(self.population)
        return self.fronts

    def reproduce(self, seed: int) -> List[Optional[Candidate]]:
        """One breeding event: two parents in, up to two mutated offspring out.

        Reads only the current (already ranked) population, so events are
        independent of each other and may run on worker threads.
        """
        rng = random.Random(seed)
        parents = self.selector.select_parents(self.population, rng)
        offspring = [c for c in self.recombiner.recombine(parents, rng) if c is not None]
        # Infeasible crossover children are reported as None so they count as rejections.
        return self.mutator.mutate(offspring, rng) + [None] * (2 - len(offspring))

    def breed(self) -> List[Candidate]:
        self.phase = Phase.BREEDING
        target = self.cfg.population_size
        pool: List[Candidate] = []
        seen: Set[Genotype] = set()
        rejected = 0
        executor = ThreadPoolExecutor(max_workers=self.cfg.workers) if self.cfg.workers > 1 else None
        try:
            while len(pool) < target:
                # Seeds are drawn up front so results do not depend on scheduling.
                events = max(1, (target - len(pool) + 1) // 2)
                seeds = [self.rng.getrandbits(64) for _ in range(events)]
                batches = executor.map(self.reproduce, seeds) if executor else map(self.reproduce, seeds)
                for children in batches:
                    for child in children:
                        if len(pool) >= target:
                            break
                        if child is None or (self.cfg.clone_suppression and child.genotype in seen):
                            rejected += 1
                            self._check_attempts(rejected, "offspring")
                            continue
                        rejected = 0
                        seen.add(child.genotype)
                        pool.append(child)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)
        return pool

    def step(self) -> None:
        if not self.population:
            self.initialize()
            self.rank()
        offspring = self.breed()
        self.phase = Phase.REPLACING
        self.population = offspring
        self.rank()
        self.epoch += 1

    def front(self) -> List[Candidate]:
        if any(c.rank < 0 for c in self.population):
            raise InvariantViolation("population has not been ranked")
        return [c for c in self.population if c.rank == 0]

    def run(self, epochs: Optional[int] = None) -> List[Candidate]:
        total = self.cfg.epochs if epochs is None else epochs
        logger.info(
            "[EvolutionEngine] Start | cities={}, items={}, population={}, epochs={}, tournament={}, mutation={}",
            self.evaluator.num_cities,
            self.evaluator.num_items,
            self.cfg.population_size,
            total,
            self.cfg.tournament_size,
            self.cfg.mutation_rate,
        )
        if not self.population:
            self.initialize()
            self.rank()
        for _ in range(total):
            if self.should_stop is not None and self.should_stop(self.epoch, self.population):
                logger.info("[EvolutionEngine] Stop requested at epoch {}", self.epoch)
                break
            self.step()
            stats = summarize_front(self.fronts[0] if self.fronts else [])
            logger.debug(
                "[EvolutionEngine] epoch {} | fronts={} front_size={} min_time={:.2f} max_profit={:.2f}",
                self.epoch,
                len(self.fronts),
                stats["size"],
                stats["min_time"],
                stats["max_profit"],
            )
        self.phase = Phase.TERMINATED
        result = self.front()
        logger.info("[EvolutionEngine] Done | epochs={} front_size={}", self.epoch, len(result))
        return result
