import random
from typing import List, Optional, Sequence, Tuple

from ..exceptions import InvariantViolation
from .base import Evaluator, PackingPlan, Route, check_plan, check_route
from .genome import Candidate, Genotype


def order_crossover(rng: random.Random, route_a: Route, route_b: Route) -> Tuple[Route, Route]:
    """OX over the non-depot positions of two depot-first routes."""
    size = len(route_a)
    if len(route_b) != size:
        raise InvariantViolation(f"parent routes differ in length: {size} != {len(route_b)}")
    if size < 2:
        return tuple(route_a), tuple(route_b)
    # Cuts lie in [1, size) so the depot never moves and end < size.
    start, end = sorted((rng.randrange(1, size), rng.randrange(1, size)))
    segment_a = tuple(route_a[start:end])
    segment_b = tuple(route_b[start:end])
    in_a = set(segment_a)
    in_b = set(segment_b)
    rest_1 = [c for c in route_b if c not in in_a]
    rest_2 = [c for c in route_a if c not in in_b]
    child_1 = tuple(rest_1[:start]) + segment_a + tuple(rest_1[start:])
    child_2 = tuple(rest_2[:start]) + segment_b + tuple(rest_2[start:])
    check_route(child_1, size)
    check_route(child_2, size)
    return child_1, child_2


def uniform_crossover(
    rng: random.Random, plan_a: PackingPlan, plan_b: PackingPlan
) -> Tuple[PackingPlan, PackingPlan]:
    if len(plan_a) != len(plan_b):
        raise InvariantViolation(f"parent plans differ in length: {len(plan_a)} != {len(plan_b)}")
    child_1: List[bool] = []
    child_2: List[bool] = []
    for a, b in zip(plan_a, plan_b):
        if rng.random() < 0.5:
            child_1.append(a)
            child_2.append(b)
        else:
            child_1.append(b)
            child_2.append(a)
    return tuple(child_1), tuple(child_2)


def bit_flip(rng: random.Random, plan: PackingPlan, rate: float) -> PackingPlan:
    return tuple((not z) if rng.random() < rate else z for z in plan)


def swap_mutation(rng: random.Random, route: Route, rate: float) -> Route:
    genes = list(route)
    n = len(genes)
    # Need two distinct non-depot positions to swap.
    if n < 3:
        return tuple(genes)
    for i in range(1, n):
        if rng.random() < rate:
            j = i
            while j == i:
                j = rng.randrange(1, n)
            genes[i], genes[j] = genes[j], genes[i]
    return tuple(genes)


class Recombiner:
    """Order crossover on routes, optional uniform crossover on packing plans."""

    def __init__(self, evaluator: Evaluator, crossover_packing: bool = True, repair: bool = True):
        self.evaluator = evaluator
        self.crossover_packing = crossover_packing
        self.repair = repair

    def cross(self, parents: Sequence[Candidate], rng: random.Random) -> Tuple[Genotype, Genotype]:
        if len(parents) != 2:
            raise ValueError(f"crossover needs exactly two parents, got {len(parents)}")
        a, b = parents
        route_1, route_2 = order_crossover(rng, a.route, b.route)
        if self.crossover_packing:
            plan_1, plan_2 = uniform_crossover(rng, a.packing_plan, b.packing_plan)
        else:
            plan_1, plan_2 = a.packing_plan, b.packing_plan
        return Genotype(route_1, plan_1), Genotype(route_2, plan_2)

    def recombine(
        self, parents: Sequence[Candidate], rng: random.Random
    ) -> Tuple[Optional[Candidate], Optional[Candidate]]:
        """Return both offspring evaluated; an infeasible child comes back as ``None``."""
        g1, g2 = self.cross(parents, rng)
        return (
            self.evaluator.evaluate(g1.route, g1.packing_plan, self.repair),
            self.evaluator.evaluate(g2.route, g2.packing_plan, self.repair),
        )


class Mutator:
    """Bit-flip on packing plans and swap on routes, then re-evaluation.

    Operates on copies: the candidates passed in are left untouched and fresh
    candidates are returned in the same order (``None`` where infeasible).
    """

    def __init__(self, evaluator: Evaluator, rate: float, repair: bool = True):
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"mutation rate must be in [0, 1], got {rate}")
        self.evaluator = evaluator
        self.rate = rate
        self.repair = repair

    def perturb(self, genotype: Genotype, rng: random.Random) -> Genotype:
        plan = bit_flip(rng, genotype.packing_plan, self.rate)
        route = swap_mutation(rng, genotype.route, self.rate)
        check_route(route, len(genotype.route))
        check_plan(plan, len(genotype.packing_plan))
        return Genotype(route, plan)

    def mutate(self, batch: Sequence[Candidate], rng: random.Random) -> List[Optional[Candidate]]:
        mutated: List[Optional[Candidate]] = []
        for individual in batch:
            g = self.perturb(individual.genotype, rng)
            mutated.append(self.evaluator.evaluate(g.route, g.packing_plan, self.repair))
        return mutated
