from .base import DEPOT, Evaluator, PackingPlan, Route, check_plan, check_route
from .genome import Candidate, Genotype
from .variation import (
    Mutator,
    Recombiner,
    bit_flip,
    order_crossover,
    swap_mutation,
    uniform_crossover,
)

__all__ = [
    "DEPOT",
    "Evaluator",
    "PackingPlan",
    "Route",
    "check_plan",
    "check_route",
    "Candidate",
    "Genotype",
    "Mutator",
    "Recombiner",
    "bit_flip",
    "order_crossover",
    "swap_mutation",
    "uniform_crossover",
]
