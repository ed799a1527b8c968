import random
from dataclasses import dataclass
from typing import List, NamedTuple, Tuple

from .base import DEPOT, PackingPlan, Route


class Genotype(NamedTuple):
    route: Route
    packing_plan: PackingPlan

    @staticmethod
    def random(rng: random.Random, num_cities: int, num_items: int) -> "Genotype":
        tail = list(range(1, num_cities))
        rng.shuffle(tail)
        route = (DEPOT, *tail) if num_cities else ()
        # Two-stage draw spreads the population over packing densities.
        rate = rng.randint(0, 100) / 100.0
        plan = tuple(rng.random() < rate for _ in range(num_items))
        return Genotype(route, plan)


@dataclass
class Candidate:
    route: Route
    packing_plan: PackingPlan
    objectives: Tuple[float, ...]
    time: float = 0.0
    profit: float = 0.0
    rank: int = -1

    def __post_init__(self):
        self.route = tuple(int(c) for c in self.route)
        self.packing_plan = tuple(bool(z) for z in self.packing_plan)
        self.objectives = tuple(float(o) for o in self.objectives)
        if not self.objectives:
            raise ValueError("Candidate requires evaluated objectives")

    @property
    def genotype(self) -> Genotype:
        return Genotype(self.route, self.packing_plan)

    @property
    def packed_items(self) -> List[int]:
        return [i for i, z in enumerate(self.packing_plan) if z]
