import random
from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Dict, List, Optional

import networkx as nx
import numpy as np

from .exceptions import InstanceFormatError


SUPPORTED_EDGE_WEIGHTS = ("CEIL_2D", "EUC_2D")


@dataclass(eq=False)
class ThiefProblem:
    """A TTP instance: a complete city graph plus items placed at cities.

    Cities are ``0..num_cities-1`` (0 is the depot), items ``0..num_items-1``.
    """

    name: str
    graph: nx.Graph
    item_profits: np.ndarray
    item_weights: np.ndarray
    item_cities: np.ndarray
    capacity: float
    min_speed: float = 0.1
    max_speed: float = 1.0
    renting_ratio: float = 0.0
    edge_weight_type: str = "CEIL_2D"
    path: Optional[Path] = None

    def __post_init__(self):
        self.item_profits = np.asarray(self.item_profits, dtype=float)
        self.item_weights = np.asarray(self.item_weights, dtype=float)
        self.item_cities = np.asarray(self.item_cities, dtype=int)
        if not (len(self.item_profits) == len(self.item_weights) == len(self.item_cities)):
            raise InstanceFormatError("item profit, weight and city arrays differ in length")
        if len(self.item_cities) and (self.item_cities.min() < 0 or self.item_cities.max() >= self.num_cities):
            raise InstanceFormatError("item assigned to a city outside the graph")
        if self.capacity <= 0:
            raise InstanceFormatError(f"capacity must be positive, got {self.capacity}")
        if not 0 < self.min_speed <= self.max_speed:
            raise InstanceFormatError(f"invalid speed range [{self.min_speed}, {self.max_speed}]")

    @property
    def num_cities(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def num_items(self) -> int:
        return len(self.item_profits)

    @cached_property
    def distances(self) -> np.ndarray:
        return nx.to_numpy_array(self.graph, nodelist=range(self.num_cities), weight="weight")


def edge_weights(coords: np.ndarray, edge_weight_type: str = "CEIL_2D") -> np.ndarray:
    if edge_weight_type not in SUPPORTED_EDGE_WEIGHTS:
        raise InstanceFormatError(f"unsupported EDGE_WEIGHT_TYPE {edge_weight_type!r}")
    diff = coords[:, None, :] - coords[None, :, :]
    dist = np.sqrt((diff ** 2).sum(axis=-1))
    if edge_weight_type == "CEIL_2D":
        return np.ceil(dist)
    return np.floor(dist + 0.5)


def build_city_graph(coords, edge_weight_type: str = "CEIL_2D") -> nx.Graph:
    coords = np.asarray(coords, dtype=float).reshape(-1, 2)
    weights = edge_weights(coords, edge_weight_type)
    graph = nx.Graph()
    for i, (x, y) in enumerate(coords):
        graph.add_node(i, pos=(float(x), float(y)))
    n = len(coords)
    graph.add_weighted_edges_from(
        (i, j, float(weights[i, j])) for i in range(n) for j in range(i + 1, n)
    )
    return graph


def parse_instance(text: str, name: str = "unnamed", path: Optional[Path] = None) -> ThiefProblem:
    header: Dict[str, str] = {}
    coords: List[List[float]] = []
    items: List[List[float]] = []
    section = None
    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line == "EOF":
            continue
        upper = line.upper()
        if upper.startswith("NODE_COORD_SECTION"):
            section = "nodes"
            continue
        if upper.startswith("ITEMS SECTION"):
            section = "items"
            continue
        if section is None:
            if ":" not in line:
                raise InstanceFormatError(f"line {lineno}: expected 'KEY: value', got {line!r}")
            key, value = line.split(":", 1)
            header[key.strip().upper()] = value.strip()
            continue
        parts = line.split()
        try:
            if section == "nodes":
                coords.append([float(parts[1]), float(parts[2])])
            else:
                # INDEX, PROFIT, WEIGHT, ASSIGNED NODE NUMBER (1-based)
                items.append([float(parts[1]), float(parts[2]), int(parts[3]) - 1])
        except (IndexError, ValueError) as exc:
            raise InstanceFormatError(f"line {lineno}: malformed {section} entry {line!r}") from exc

    def number(key: str, default: Optional[float] = None) -> float:
        if key not in header:
            if default is None:
                raise InstanceFormatError(f"missing header {key!r}")
            return default
        try:
            return float(header[key])
        except ValueError as exc:
            raise InstanceFormatError(f"header {key!r} is not numeric: {header[key]!r}") from exc

    dimension = int(number("DIMENSION"))
    num_items = int(number("NUMBER OF ITEMS", 0))
    if len(coords) != dimension:
        raise InstanceFormatError(f"DIMENSION is {dimension} but {len(coords)} cities were listed")
    if len(items) != num_items:
        raise InstanceFormatError(f"NUMBER OF ITEMS is {num_items} but {len(items)} items were listed")
    edge_weight_type = header.get("EDGE_WEIGHT_TYPE", "CEIL_2D").upper()
    table = np.array(items, dtype=float).reshape(-1, 3)
    return ThiefProblem(
        name=header.get("PROBLEM NAME", name),
        graph=build_city_graph(coords, edge_weight_type),
        item_profits=table[:, 0],
        item_weights=table[:, 1],
        item_cities=table[:, 2].astype(int),
        capacity=number("CAPACITY OF KNAPSACK"),
        min_speed=number("MIN SPEED", 0.1),
        max_speed=number("MAX SPEED", 1.0),
        renting_ratio=number("RENTING RATIO", 0.0),
        edge_weight_type=edge_weight_type,
        path=path,
    )


def load_instance(path: Path) -> ThiefProblem:
    path = Path(path)
    return parse_instance(path.read_text(), name=path.stem, path=path)


def random_instance(
    rng: random.Random,
    num_cities: int,
    items_per_city: int = 1,
    capacity_fraction: float = 0.5,
    name: str = "random",
) -> ThiefProblem:
    """Uniform random instance; items are placed at every city except the depot."""
    coords = [[rng.randint(0, 1000), rng.randint(0, 1000)] for _ in range(num_cities)]
    profits, weights, cities = [], [], []
    for city in range(1, num_cities):
        for _ in range(items_per_city):
            profits.append(rng.randint(1, 1000))
            weights.append(rng.randint(1, 1000))
            cities.append(city)
    capacity = max(1.0, float(int(sum(weights) * capacity_fraction)))
    return ThiefProblem(
        name=name,
        graph=build_city_graph(coords),
        item_profits=profits,
        item_weights=weights,
        item_cities=cities,
        capacity=capacity,
    )
