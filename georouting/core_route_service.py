"""
Route service: the query facade of the georouting engine.

Holds one published, immutable graph snapshot (road graph plus its spatial
index) shared by every concurrent request, and runs the per-request
pipeline: locate start -> locate end -> A* search -> serialize.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import networkx as nx

from .config import config
from .exceptions import (
    GraphInvariantError,
    InvalidCoordinatesError,
    NodeNotFoundError,
    RouteError,
)
from .graph.graph_builder import build_road_graph
from .graph.nearest_node import NearestNodeLocator, StoreNearestNodeLocator
from .logger import logger as metrics_logger
from .models.geometry import Coordinate, Route
from .routing.algorithms import find_path_with_cost
from .routing.serializer import serialize_route
from .stores import LineStore, create_store

ROUTER_SETTINGS = (
    'snap_radius_m',
    'max_snap_radius_m',
    'snap_strategy',
    'max_expansions',
    'search_timeout_s',
    'graph_refresh_seconds',
    'service_area',
)


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable graph published for concurrent readers"""
    graph: nx.DiGraph
    locator: Any
    built_at: float

    @property
    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()


@dataclass(frozen=True)
class RouteResult:
    """Outcome of one routing query: a route or a typed RouteError"""
    route: Optional[Route] = None
    error: Optional[RouteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {'ok': True, 'route': self.route.to_geojson()}
        return {'ok': False, 'error': {'code': self.error.code, 'message': str(self.error)}}


class RouteService:
    """
    Shortest path queries over a road graph built from a LineStore.

    The graph is built on first use (or explicitly with ``load_graph``) and
    rebuilt every ``graph_refresh_seconds`` when that is positive. A rebuild
    replaces the snapshot reference in one assignment. Only one request
    rebuilds; requests arriving meanwhile keep using the current snapshot.
    """

    def __init__(self, store: LineStore, directed: Optional[bool] = None, **settings):
        unknown = set(settings) - set(ROUTER_SETTINGS)
        if unknown:
            raise TypeError(f"Unknown RouteService settings: {sorted(unknown)}")
        resolved = config.get_router_config()
        resolved.update(settings)

        self.store = store
        self.logger = logging.getLogger(__name__)
        self.directed = config.directed_segments if directed is None else directed
        self.snap_radius_m: float = resolved['snap_radius_m']
        self.max_snap_radius_m: float = resolved['max_snap_radius_m']
        self.snap_strategy: str = resolved['snap_strategy']
        self.max_expansions: Optional[int] = resolved['max_expansions']
        self.search_timeout_s: Optional[float] = resolved['search_timeout_s']
        self.graph_refresh_seconds: float = resolved['graph_refresh_seconds'] or 0.0
        self.service_area = resolved['service_area']

        self._snapshot: Optional[GraphSnapshot] = None
        self._next_refresh_at = 0.0
        self._build_lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg=config) -> 'RouteService':
        store = create_store(**cfg.get_store_config())
        return cls(store, **cfg.get_graph_builder_config(), **cfg.get_router_config())

    # ------------------------------------------------------------------
    #  Graph lifecycle
    # ------------------------------------------------------------------
    def _build_snapshot(self) -> GraphSnapshot:
        start_time = time.time()
        segments = self.store.list_line_segments()
        road_graph = build_road_graph(segments, directed=self.directed)
        if self.snap_strategy == 'store':
            locator = StoreNearestNodeLocator(road_graph, self.store)
        else:
            locator = NearestNodeLocator(road_graph)
        snapshot = GraphSnapshot(road_graph, locator, time.time())
        metrics_logger.log_graph_build(snapshot.node_count, snapshot.edge_count,
                                       (time.time() - start_time) * 1000)
        return snapshot

    def _publish(self, snapshot: GraphSnapshot):
        self._snapshot = snapshot
        if self.graph_refresh_seconds > 0:
            self._next_refresh_at = time.monotonic() + self.graph_refresh_seconds

    def load_graph(self) -> GraphSnapshot:
        """Build the graph from the store and publish it"""
        with self._build_lock:
            snapshot = self._build_snapshot()
            self._publish(snapshot)
            return snapshot

    def _refresh_due(self) -> bool:
        return self.graph_refresh_seconds > 0 and time.monotonic() >= self._next_refresh_at

    def snapshot(self) -> GraphSnapshot:
        """Current snapshot, building or refreshing it when needed"""
        snapshot = self._snapshot
        if snapshot is not None and not self._refresh_due():
            return snapshot

        if snapshot is None:
            self._build_lock.acquire()
        elif not self._build_lock.acquire(blocking=False):
            # another request is already rebuilding; serve the current graph
            return snapshot

        try:
            snapshot = self._snapshot
            if snapshot is None:
                snapshot = self._build_snapshot()
                self._publish(snapshot)
            elif self._refresh_due():
                try:
                    snapshot = self._build_snapshot()
                except RouteError as e:
                    # keep serving the previous graph until the next interval
                    self.logger.warning(f"Graph refresh failed, keeping snapshot from {snapshot.built_at:.0f}: {e}")
                    self._next_refresh_at = time.monotonic() + self.graph_refresh_seconds
                else:
                    self._publish(snapshot)
            return snapshot
        finally:
            self._build_lock.release()

    def graph_status(self) -> Dict[str, Any]:
        snapshot = self._snapshot
        if snapshot is None:
            return {'loaded': False}
        return {
            'loaded': True,
            'nodes': snapshot.node_count,
            'edges': snapshot.edge_count,
            'directed': self.directed,
            'built_at': snapshot.built_at,
        }

    # ------------------------------------------------------------------
    #  Query pipeline
    # ------------------------------------------------------------------
    def _validate_point(self, value, endpoint: str) -> Coordinate:
        try:
            point = Coordinate.coerce(value)
        except InvalidCoordinatesError as e:
            raise InvalidCoordinatesError(f"Invalid {endpoint} coordinate: {e}") from e
        if self.service_area is not None:
            min_lat, min_lon, max_lat, max_lon = self.service_area
            if not (min_lat <= point.lat <= max_lat and min_lon <= point.lon <= max_lon):
                raise InvalidCoordinatesError(
                    f"The {endpoint} point ({point.lat}, {point.lon}) is outside the service area")
        return point

    def _snap_radius(self, max_snap_radius) -> float:
        if max_snap_radius is None:
            return self.snap_radius_m
        try:
            radius = float(max_snap_radius)
        except (TypeError, ValueError):
            raise InvalidCoordinatesError(f"Snap radius is not a number: {max_snap_radius!r}")
        if not math.isfinite(radius) or radius < 0:
            raise InvalidCoordinatesError(f"Snap radius must be finite and non-negative, got {max_snap_radius!r}")
        if radius > self.max_snap_radius_m:
            self.logger.debug(f"Snap radius {radius} m clamped to {self.max_snap_radius_m} m")
            radius = self.max_snap_radius_m
        return radius

    def _locate(self, snapshot: GraphSnapshot, point: Coordinate, radius: float, endpoint: str) -> Coordinate:
        try:
            vertex, distance = snapshot.locator.locate_with_distance(point, radius)
        except NodeNotFoundError as e:
            raise NodeNotFoundError(
                f"No road within {radius:g} m of the {endpoint} point ({point.lat}, {point.lon})",
                endpoint=endpoint, radius=radius,
            ) from e
        self.logger.debug(f"Snapped {endpoint} ({point.lat}, {point.lon}) to {vertex} at {distance:.2f} m")
        return vertex

    def find_route(self, start, end, max_snap_radius: Optional[float] = None, cancel_event=None) -> Route:
        """Run the pipeline and return a Route, raising RouteError subclasses on failure"""
        start_point = self._validate_point(start, 'start')
        end_point = self._validate_point(end, 'end')
        radius = self._snap_radius(max_snap_radius)

        snapshot = self.snapshot()
        start_vertex = self._locate(snapshot, start_point, radius, 'start')
        end_vertex = self._locate(snapshot, end_point, radius, 'end')

        path, distance = find_path_with_cost(
            snapshot.graph, start_vertex, end_vertex,
            max_expansions=self.max_expansions,
            timeout=self.search_timeout_s,
            cancel_event=cancel_event,
        )
        self.logger.info(f"A* found path: {len(path)} vertices, {distance:.1f} m from {start_vertex} to {end_vertex}")
        return serialize_route(path, distance_m=distance)

    def route(self, start, end, max_snap_radius: Optional[float] = None, cancel_event=None) -> RouteResult:
        """Run the pipeline and return a RouteResult; RouteErrors become typed results"""
        start_time = time.time()
        outcome = 'ok'
        try:
            route = self.find_route(start, end, max_snap_radius=max_snap_radius, cancel_event=cancel_event)
            return RouteResult(route=route)
        except RouteError as e:
            outcome = e.code
            self.logger.warning(f"Route {start} -> {end} failed: {e}")
            return RouteResult(error=e)
        except GraphInvariantError as e:
            outcome = 'internal_error'
            self.logger.error(f"Graph invariant broken while routing {start} -> {end}: {e}")
            raise
        finally:
            metrics_logger.log_route_request(start, end, (time.time() - start_time) * 1000,
                                             outcome == 'ok', outcome)

    def close(self):
        self.store.close()
