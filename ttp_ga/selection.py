import random
from typing import List, Sequence

from .exceptions import ConfigurationError, InvariantViolation
from .operators.genome import Candidate


class TournamentSelector:
    def __init__(self, size: int):
        if size < 1:
            raise ConfigurationError(f"tournament size must be >= 1, got {size}")
        self.size = size

    def select(self, population: Sequence[Candidate], rng: random.Random) -> Candidate:
        """Draw ``size`` members with replacement and return the lowest-ranked one.

        Ties keep the first member drawn.
        """
        if self.size > len(population):
            raise ConfigurationError(
                f"tournament size {self.size} exceeds population size {len(population)}"
            )
        best = None
        for _ in range(self.size):
            individual = population[rng.randrange(len(population))]
            if individual.rank < 0:
                raise InvariantViolation("tournament drew an unranked candidate")
            if best is None or individual.rank < best.rank:
                best = individual
        return best

    def select_parents(self, population: Sequence[Candidate], rng: random.Random, n: int = 2) -> List[Candidate]:
        return [self.select(population, rng) for _ in range(n)]
