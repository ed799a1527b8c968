"""
Non-dominated tournament genetic algorithm for the bi-objective Traveling Thief Problem.
"""

__all__ = [
    "data",
    "evaluation",
    "evolutionary",
    "exceptions",
    "operators",
    "ranking",
    "selection",
]
