import logging
import time
from typing import Iterable, Iterator, Sequence

import networkx as nx

from ..models.geometry import Coordinate, Edge
from ..utils.geo_utils import haversine_distance

logger = logging.getLogger(__name__)


def segment_edges(segment: Sequence[Coordinate], directed: bool = False) -> Iterator[Edge]:
    """Yield the edges contributed by one ordered line segment.

    Consecutive identical vertices are skipped so that degenerate pairs never
    produce zero-weight self loops.
    """
    for current_vertex, next_vertex in zip(segment, segment[1:]):
        if current_vertex == next_vertex:
            continue
        distance = haversine_distance(
            current_vertex.lat, current_vertex.lon,
            next_vertex.lat, next_vertex.lon
        )
        edge = Edge(current_vertex, next_vertex, distance)
        yield edge
        if not directed:
            yield edge.reversed()


def build_road_graph(segments: Iterable[Sequence[Coordinate]], directed: bool = False) -> nx.DiGraph:
    """Build a frozen road graph from ordered vertex lists.

    Nodes are Coordinates, edges carry ``weight`` in metres. When several
    segments connect the same ordered pair the shortest weight is kept.
    """
    start_time = time.time()
    road_graph = nx.DiGraph(directed_segments=directed)
    segment_count = 0
    replaced_edges = 0

    for segment in segments:
        segment_count += 1
        segment = list(segment)
        for vertex in segment:
            if vertex not in road_graph:
                road_graph.add_node(vertex)
        for edge in segment_edges(segment, directed=directed):
            existing_edge = road_graph.get_edge_data(edge.source, edge.target)
            if existing_edge is not None:
                if existing_edge['weight'] <= edge.weight:
                    continue
                replaced_edges += 1
            road_graph.add_edge(edge.source, edge.target, weight=edge.weight)

    elapsed = time.time() - start_time
    logger.info(f"Road graph built from {segment_count} segments: "
                f"{road_graph.number_of_nodes()} nodes, {road_graph.number_of_edges()} edges "
                f"({'directed' if directed else 'bidirectional'}) in {elapsed:.2f} seconds")
    if replaced_edges:
        logger.debug(f"Kept the shorter edge for {replaced_edges} duplicated vertex pairs")

    return nx.freeze(road_graph)


def iter_edges(road_graph: nx.DiGraph) -> Iterator[Edge]:
    """Yield every edge of the graph as an Edge, in adjacency order"""
    for u, v, data in road_graph.edges(data=True):
        yield Edge(u, v, data['weight'])


def outgoing_edges(road_graph: nx.DiGraph, vertex: Coordinate) -> list:
    """Outgoing edges of one vertex in insertion order"""
    return [Edge(vertex, neighbor, data['weight']) for neighbor, data in road_graph.adj[vertex].items()]
