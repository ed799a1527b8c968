from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from ..exceptions import InvariantViolation

if TYPE_CHECKING:
    from .genome import Candidate


Route = Tuple[int, ...]
PackingPlan = Tuple[bool, ...]

DEPOT = 0


def check_route(route: Sequence[int], num_cities: int) -> None:
    """Raise if ``route`` is not a depot-first permutation of ``0..num_cities-1``."""
    if len(route) != num_cities:
        raise InvariantViolation(f"route has {len(route)} cities, expected {num_cities}")
    if num_cities and route[0] != DEPOT:
        raise InvariantViolation(f"route starts at {route[0]}, expected depot {DEPOT}")
    if sorted(route) != list(range(num_cities)):
        raise InvariantViolation(f"route is not a permutation: {list(route)}")


def check_plan(plan: Sequence[bool], num_items: int) -> None:
    if len(plan) != num_items:
        raise InvariantViolation(f"packing plan has {len(plan)} entries, expected {num_items}")


class Evaluator(ABC):
    """Turns a raw genotype into an evaluated Candidate.

    Implementations return ``None`` when the genotype is infeasible and cannot
    (or, with ``repair=False``, may not) be repaired.
    """

    num_cities: int
    num_items: int

    @abstractmethod
    def evaluate(self, route: Route, packing_plan: PackingPlan, repair: bool = True) -> Optional["Candidate"]:
        raise NotImplementedError
