from typing import Dict, Iterable, Iterator, List, Optional, Sequence

import networkx as nx
import numpy as np

from .data import ThiefProblem
from .operators.base import Evaluator, PackingPlan, Route, check_plan, check_route
from .operators.genome import Candidate
from .ranking import Relation, pareto_relation


def tour_length(graph: nx.Graph, tour: Sequence[int]) -> float:
    dist = 0.0
    n = len(tour)
    if n < 2:
        return dist
    for i in range(n):
        a = tour[i]
        b = tour[(i + 1) % n]
        dist += graph[a][b]["weight"]
    return float(dist)


class ThiefEvaluator(Evaluator):
    """
    Bi-objective TTP evaluation: objectives are ``(time, -profit)``, both minimized.

    The thief starts empty at the depot, picks the planned items at each city it
    visits and slows down linearly with the carried weight, down to ``min_speed``
    at full capacity. The tour closes back at the depot.
    """

    def __init__(self, problem: ThiefProblem):
        self.problem = problem
        self.num_cities = problem.num_cities
        self.num_items = problem.num_items
        ratio = problem.item_profits / np.maximum(problem.item_weights, 1e-12)
        # Repair drops the least valuable items per unit weight first.
        self._drop_order = np.argsort(ratio, kind="stable")

    def repair_plan(self, packing_plan: PackingPlan) -> PackingPlan:
        picked = np.asarray(packing_plan, dtype=bool).copy()
        weight = self.problem.item_weights[picked].sum()
        for item in self._drop_order:
            if weight <= self.problem.capacity:
                break
            if picked[item]:
                picked[item] = False
                weight -= self.problem.item_weights[item]
        return tuple(bool(z) for z in picked)

    def objective_values(self, route: Route, packing_plan: PackingPlan):
        p = self.problem
        picked = np.asarray(packing_plan, dtype=bool)
        city_weight = np.zeros(p.num_cities)
        np.add.at(city_weight, p.item_cities[picked], p.item_weights[picked])
        tour = np.asarray(route, dtype=int)
        carried = np.cumsum(city_weight[tour])
        legs = p.distances[tour, np.roll(tour, -1)]
        speed = p.max_speed - carried * (p.max_speed - p.min_speed) / p.capacity
        time = float((legs / speed).sum())
        profit = float(p.item_profits[picked].sum())
        return time, profit

    def evaluate(self, route: Route, packing_plan: PackingPlan, repair: bool = True) -> Optional[Candidate]:
        check_route(route, self.num_cities)
        check_plan(packing_plan, self.num_items)
        plan = tuple(bool(z) for z in packing_plan)
        weight = self.problem.item_weights[np.asarray(plan, dtype=bool)].sum()
        if weight > self.problem.capacity:
            if not repair:
                return None
            plan = self.repair_plan(plan)
        time, profit = self.objective_values(route, plan)
        return Candidate(route=route, packing_plan=plan, objectives=(time, -profit), time=time, profit=profit)


class NonDominatedSet:
    """Archive of mutually non-dominated candidates with distinct objective vectors."""

    def __init__(self, relation: Relation = pareto_relation):
        self.relation = relation
        self.entries: List[Candidate] = []

    def add(self, candidate: Candidate) -> bool:
        for other in self.entries:
            if other.objectives == candidate.objectives:
                return False
            if self.relation(candidate.objectives, other.objectives) < 0:
                return False
        self.entries = [e for e in self.entries if self.relation(candidate.objectives, e.objectives) <= 0]
        self.entries.append(candidate)
        return True

    def update(self, candidates: Iterable[Candidate]) -> int:
        return sum(1 for c in candidates if self.add(c))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(sorted(self.entries, key=lambda c: c.objectives))


def summarize_front(front: Sequence[Candidate]) -> Dict[str, float]:
    if not front:
        return {"size": 0, "min_time": float("inf"), "max_profit": float("-inf")}
    return {
        "size": len(front),
        "min_time": min(c.time for c in front),
        "max_profit": max(c.profit for c in front),
    }
