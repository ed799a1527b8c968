from typing import Callable, List, Sequence

from .exceptions import InvariantViolation
from .operators.genome import Candidate


# relation(a, b) -> 1 if a dominates b, -1 if b dominates a, 0 otherwise.
Relation = Callable[[Sequence[float], Sequence[float]], int]


def pareto_relation(a: Sequence[float], b: Sequence[float]) -> int:
    """Pareto dominance over objective vectors where every objective is minimized."""
    if len(a) != len(b):
        raise ValueError(f"objective vectors differ in length: {len(a)} != {len(b)}")
    a_better = False
    b_better = False
    for x, y in zip(a, b):
        if x < y:
            a_better = True
        elif y < x:
            b_better = True
        if a_better and b_better:
            return 0
    if a_better:
        return 1
    if b_better:
        return -1
    return 0


def fast_non_dominated_sort(objectives: Sequence[Sequence[float]], relation: Relation = pareto_relation) -> List[List[int]]:
    """
    Deb's fast non-dominated sort, O(M*N^2).
    Returns fronts as lists of positions into ``objectives``; front 0 is non-dominated.
    """
    n = len(objectives)
    dominates: List[List[int]] = [[] for _ in range(n)]
    dominated_by = [0] * n
    fronts: List[List[int]] = [[]]
    for p in range(n):
        for q in range(n):
            if p == q:
                continue
            r = relation(objectives[p], objectives[q])
            if r > 0:
                dominates[p].append(q)
            elif r < 0:
                dominated_by[p] += 1
        if dominated_by[p] == 0:
            fronts[0].append(p)
    i = 0
    while fronts[i]:
        nxt: List[int] = []
        for p in fronts[i]:
            for q in dominates[p]:
                dominated_by[q] -= 1
                if dominated_by[q] == 0:
                    nxt.append(q)
        i += 1
        fronts.append(nxt)
    fronts.pop()
    return fronts


class DominanceRanker:
    """Assigns ``Candidate.rank`` for one population.

    Positions in the population list are the only identity used while sorting,
    so nothing index-like is stored on the candidates themselves.
    """

    def __init__(self, relation: Relation = pareto_relation):
        self.relation = relation

    def rank(self, population: Sequence[Candidate]) -> List[List[Candidate]]:
        for c in population:
            c.rank = -1
        fronts = fast_non_dominated_sort([c.objectives for c in population], self.relation)
        for r, front in enumerate(fronts):
            for idx in front:
                population[idx].rank = r
        unranked = [i for i, c in enumerate(population) if c.rank < 0]
        if unranked:
            # Only reachable with a comparator that is not a strict partial order.
            raise InvariantViolation(f"{len(unranked)} candidates left unranked: positions {unranked[:10]}")
        return [[population[i] for i in front] for front in fronts]
