import random

import pytest

from ttp_ga.data import ThiefProblem, build_city_graph
from ttp_ga.evaluation import ThiefEvaluator
from ttp_ga.operators.base import Evaluator


def make_problem(coords, items, capacity, min_speed=0.1, max_speed=1.0, name="test"):
    """items: list of (profit, weight, city)."""
    return ThiefProblem(
        name=name,
        graph=build_city_graph(coords),
        item_profits=[p for p, _, _ in items],
        item_weights=[w for _, w, _ in items],
        item_cities=[c for _, _, c in items],
        capacity=capacity,
        min_speed=min_speed,
        max_speed=max_speed,
    )


def is_route(route, num_cities):
    return len(route) == num_cities and route[0] == 0 and sorted(route) == list(range(num_cities))


class FlakyEvaluator(Evaluator):
    """Rejects every ``reject_every``-th call, otherwise delegates."""

    def __init__(self, inner: Evaluator, reject_every: int = 2):
        self.inner = inner
        self.num_cities = inner.num_cities
        self.num_items = inner.num_items
        self.reject_every = reject_every
        self.calls = 0
        self.rejected = 0

    def evaluate(self, route, packing_plan, repair=True):
        self.calls += 1
        if self.calls % self.reject_every == 0:
            self.rejected += 1
            return None
        return self.inner.evaluate(route, packing_plan, repair)


class NeverFeasible(Evaluator):
    def __init__(self, num_cities, num_items):
        self.num_cities = num_cities
        self.num_items = num_items

    def evaluate(self, route, packing_plan, repair=True):
        return None


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def triangle_problem():
    # d(0,1)=10, d(1,2)=10, d(2,0)=ceil(14.14)=15
    return make_problem(
        coords=[(0, 0), (0, 10), (10, 10)],
        items=[(50, 5, 1), (30, 5, 2)],
        capacity=10,
    )


@pytest.fixture
def small_problem():
    # 4 cities, 2 items, capacity covers everything so repair never fires.
    return make_problem(
        coords=[(0, 0), (10, 0), (10, 10), (0, 10)],
        items=[(40, 10, 1), (90, 30, 3)],
        capacity=100,
    )


@pytest.fixture
def medium_problem():
    r = random.Random(3)
    coords = [(r.randint(0, 100), r.randint(0, 100)) for _ in range(12)]
    items = [(r.randint(1, 100), r.randint(1, 100), c) for c in range(1, 12) for _ in range(2)]
    capacity = sum(w for _, w, _ in items) // 3
    return make_problem(coords, items, capacity)


@pytest.fixture
def small_evaluator(small_problem):
    return ThiefEvaluator(small_problem)


@pytest.fixture
def medium_evaluator(medium_problem):
    return ThiefEvaluator(medium_problem)
