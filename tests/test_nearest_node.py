import pytest

from conftest import A, B, grid_point, grid_segments
from georouting.exceptions import InvalidCoordinatesError, NodeNotFoundError
from georouting.graph.graph_builder import build_road_graph
from georouting.graph.nearest_node import NearestNodeLocator, StoreNearestNodeLocator, locate_nearest_node
from georouting.models.geometry import Coordinate
from georouting.stores import MemoryLineStore
from georouting.utils.geo_utils import haversine_distance, radius_to_degree_box


@pytest.fixture
def grid_graph():
    return build_road_graph(grid_segments(5))


def test_query_at_vertex_resolves_with_zero_distance(grid_graph):
    locator = NearestNodeLocator(grid_graph)
    vertex, distance = locator.locate_with_distance(grid_point(2, 3), 10)
    assert vertex == grid_point(2, 3)
    assert distance == 0.0
    # radius zero still finds an exact hit
    assert locator.locate(grid_point(2, 3), 0) == grid_point(2, 3)


def test_picks_the_closest_vertex(grid_graph):
    query = Coordinate(grid_point(1, 1).lat + 0.0002, grid_point(1, 1).lon + 0.0003)
    assert locate_nearest_node(grid_graph, query, 100) == grid_point(1, 1)


def test_radius_is_inclusive_and_strict_outside():
    road_graph = build_road_graph([[A, B]])
    query = Coordinate(13.7460, -89.6759)
    distance = haversine_distance(query.lat, query.lon, A.lat, A.lon)
    locator = NearestNodeLocator(road_graph)
    assert locator.locate(query, distance + 1e-6) == A
    with pytest.raises(NodeNotFoundError):
        locator.locate(query, distance - 1e-3)


def test_vertices_beyond_radius_are_ignored():
    far = Coordinate(13.80, -89.60)
    road_graph = build_road_graph([[far, Coordinate(13.81, -89.60)]])
    with pytest.raises(NodeNotFoundError):
        locate_nearest_node(road_graph, A, 100)
    # a nearby vertex wins regardless of the far ones
    road_graph = build_road_graph([[far, Coordinate(13.81, -89.60)], [A, B]])
    assert locate_nearest_node(road_graph, A, 100) == A


def test_equidistant_candidates_resolve_by_coordinate_order():
    east = Coordinate(0.0, 0.5)
    west = Coordinate(0.0, -0.5)
    for segments in ([[east, west]], [[west, east]]):
        road_graph = build_road_graph(segments)
        assert locate_nearest_node(road_graph, Coordinate(0.0, 0.0), 100000) == west
    north = Coordinate(0.5, 0.0)
    south = Coordinate(-0.5, 0.0)
    road_graph = build_road_graph([[north, south]])
    assert locate_nearest_node(road_graph, Coordinate(0.0, 0.0), 100000) == south


def test_repeated_lookups_are_reproducible(grid_graph):
    locator = NearestNodeLocator(grid_graph)
    query = Coordinate(13.7015, -89.1985)
    first = locator.locate(query, 500)
    assert all(locator.locate(query, 500) == first for _ in range(5))


def test_empty_graph_never_resolves():
    road_graph = build_road_graph([])
    with pytest.raises(NodeNotFoundError):
        locate_nearest_node(road_graph, A, 1e6)


@pytest.mark.parametrize("radius", [-1, float('nan'), float('inf'), 'far'])
def test_invalid_radius_is_rejected(grid_graph, radius):
    with pytest.raises(InvalidCoordinatesError):
        locate_nearest_node(grid_graph, grid_point(0, 0), radius)


def test_search_box_wraps_across_the_antimeridian():
    east_edge = Coordinate(0.0, 179.9999)
    road_graph = build_road_graph([[east_edge, Coordinate(0.0, 179.9)]])
    assert locate_nearest_node(road_graph, Coordinate(0.0, -179.9999), 100) == east_edge


def test_store_locator_only_returns_graph_vertices():
    outside = [Coordinate(13.7466, -89.6758), Coordinate(13.7467, -89.6757)]
    store = MemoryLineStore([[A, B], outside])
    road_graph = build_road_graph([[A, B]])
    locator = StoreNearestNodeLocator(road_graph, store)
    # the closest store vertex is not part of this graph
    assert locator.locate(Coordinate(13.74661, -89.67581), 100) == A
    with pytest.raises(NodeNotFoundError):
        locator.locate(Coordinate(13.7500, -89.6700), 50)


def test_polar_search_box_keeps_slack_on_latitude():
    query = Coordinate(89.9, 10.0)
    south = Coordinate(89.0, 10.0)
    radius = haversine_distance(query.lat, query.lon, south.lat, south.lon)
    min_lon, min_lat, max_lon, max_lat = radius_to_degree_box(query.lat, query.lon, radius)
    assert (min_lon, max_lon) == (-180.0, 180.0)
    assert min_lat < south.lat - 0.001
    road_graph = build_road_graph([[south, Coordinate(88.0, 10.0)]])
    assert locate_nearest_node(road_graph, query, radius + 1.0) == south
