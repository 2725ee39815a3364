import logging
import time
from heapq import heappush, heappop
from itertools import count
from typing import Callable, Dict, Optional, Sequence, Tuple

import networkx as nx

from ..exceptions import (
    GraphInvariantError,
    PathNotFoundError,
    SearchCancelledError,
    SearchLimitExceededError,
)
from ..models.geometry import Coordinate
from ..utils.geo_utils import haversine_distance

logger = logging.getLogger(__name__)

Path = Tuple[Coordinate, ...]
Heuristic = Callable[[Coordinate], float]


def haversine_heuristic(goal: Coordinate) -> Heuristic:
    """Straight-line metres to ``goal``; never longer than any road path"""
    def estimate(node: Coordinate) -> float:
        return haversine_distance(node.lat, node.lon, goal.lat, goal.lon)
    return estimate


def _reconstruct(came_from: Dict[Coordinate, Coordinate], goal: Coordinate) -> Path:
    path = [goal]
    node = goal
    while node in came_from:
        node = came_from[node]
        path.append(node)
    path.reverse()
    return tuple(path)


def find_path_with_cost(road_graph: nx.DiGraph, start: Coordinate, goal: Coordinate,
                        heuristic: Optional[Heuristic] = None,
                        max_expansions: Optional[int] = None,
                        timeout: Optional[float] = None,
                        cancel_event=None) -> Tuple[Path, float]:
    """A* search returning the path and its total weight.

    Frontier entries are ``(g + h, sequence, g, node)``; the sequence number
    makes equal priorities pop in insertion order. A vertex is re-queued
    whenever its cost improves and stale entries are skipped on pop, so an
    admissible heuristic always yields a minimum-weight path.

    Raises PathNotFoundError when the frontier empties,
    SearchLimitExceededError when ``max_expansions`` or ``timeout`` seconds
    run out, and SearchCancelledError once ``cancel_event`` is set.
    """
    if start not in road_graph or goal not in road_graph:
        raise GraphInvariantError(f"Search endpoints must be graph vertices: {start} -> {goal}")

    if heuristic is None:
        heuristic = haversine_heuristic(goal)

    deadline = time.monotonic() + timeout if timeout else None
    sequence = count()
    best_cost: Dict[Coordinate, float] = {start: 0.0}
    came_from: Dict[Coordinate, Coordinate] = {}
    frontier = []

    def estimate(node: Coordinate) -> float:
        h = heuristic(node)
        if h < 0:
            raise ValueError(f"Heuristic returned a negative estimate {h} for {node}")
        return h

    heappush(frontier, (estimate(start), next(sequence), 0.0, start))
    expansions = 0

    while frontier:
        _, _, cost, node = heappop(frontier)
        if cost > best_cost[node]:
            continue  # stale entry

        if node == goal:
            logger.debug(f"A* reached goal after {expansions} expansions, cost={cost:.2f} m")
            return _reconstruct(came_from, goal), cost

        if cancel_event is not None and cancel_event.is_set():
            raise SearchCancelledError(f"Search from {start} to {goal} was cancelled")
        expansions += 1
        if max_expansions is not None and expansions > max_expansions:
            raise SearchLimitExceededError(
                f"Search from {start} to {goal} gave up after {max_expansions} expansions")
        if deadline is not None and time.monotonic() > deadline:
            raise SearchLimitExceededError(
                f"Search from {start} to {goal} gave up after {timeout} seconds")

        for neighbor, data in road_graph.adj[node].items():
            weight = data['weight']
            if weight < 0:
                raise GraphInvariantError(f"Negative edge weight {weight} on {node} -> {neighbor}")
            new_cost = cost + weight
            if new_cost < best_cost.get(neighbor, float('inf')):
                best_cost[neighbor] = new_cost
                came_from[neighbor] = node
                heappush(frontier, (new_cost + estimate(neighbor), next(sequence), new_cost, neighbor))

    logger.debug(f"A* frontier exhausted after {expansions} expansions")
    raise PathNotFoundError(f"No path exists between {start} and {goal}")


def find_path(road_graph: nx.DiGraph, start: Coordinate, goal: Coordinate,
              heuristic: Optional[Heuristic] = None, **limits) -> Path:
    """Shortest path from ``start`` to ``goal`` as a tuple of vertices"""
    path, _ = find_path_with_cost(road_graph, start, goal, heuristic=heuristic, **limits)
    return path


def path_distance(road_graph: nx.DiGraph, path: Sequence[Coordinate]) -> float:
    """Sum of edge weights along ``path``; every hop must be a graph edge"""
    total = 0.0
    for u, v in zip(path, path[1:]):
        data = road_graph.get_edge_data(u, v)
        if data is None:
            raise GraphInvariantError(f"Path uses a missing edge {u} -> {v}")
        total += data['weight']
    return total
