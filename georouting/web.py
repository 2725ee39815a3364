"""
georouting - Flask Web API Blueprint
Shortest path over the road network, returned as a GeoJSON LineString
"""

import time
from typing import Optional

from flask import Blueprint, Flask, g, jsonify, request
from flask_cors import CORS

from .core_route_service import RouteService
from .exceptions import InvalidCoordinatesError, RouteError
from .logger import logger

routing_bp = Blueprint('routing_bp', __name__)

# Global route service instance, set once at startup
route_service: Optional[RouteService] = None

STATUS_BY_CODE = {
    'invalid_input': 400,
    'node_not_found': 404,
    'path_not_found': 404,
    'search_limit_exceeded': 404,
    'search_cancelled': 503,
    'adapter_failure': 502,
}


def initialize_route_service(service: Optional[RouteService] = None, preload: bool = True) -> RouteService:
    """Install the service used by the endpoints, building the graph up front"""
    global route_service
    try:
        route_service = service or RouteService.from_config()
        if preload:
            route_service.load_graph()
        logger.info("Route service initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize route service: {e}")
        raise
    return route_service


def error_response(error: RouteError):
    body = {'error': {'code': error.code, 'message': str(error)}}
    endpoint = getattr(error, 'endpoint', None)
    if endpoint:
        body['error']['endpoint'] = endpoint
    return jsonify(body), STATUS_BY_CODE.get(error.code, 400)


def _float_arg(source: dict, key: str) -> float:
    raw = source.get(key)
    if raw is None or raw == '':
        raise InvalidCoordinatesError(f"Missing parameter: {key}")
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(f"Parameter {key} is not a number: {raw!r}")


def parse_route_request():
    """Return (start, end, radius) from query args or a JSON body"""
    data = request.get_json(silent=True) if request.method == 'POST' else None
    if data is not None and not isinstance(data, dict):
        raise InvalidCoordinatesError("Request body must be a JSON object")
    if data:
        start_coords = data.get('start') or {}
        end_coords = data.get('end') or {}
        if not isinstance(start_coords, dict) or not isinstance(end_coords, dict):
            raise InvalidCoordinatesError("'start' and 'end' must be objects with lat and lon")
        start = (_float_arg(start_coords, 'lat'), _float_arg(start_coords, 'lon'))
        end = (_float_arg(end_coords, 'lat'), _float_arg(end_coords, 'lon'))
        radius = data.get('radius')
    else:
        args = request.args
        start = (_float_arg(args, 'start_lat'), _float_arg(args, 'start_lon'))
        end = (_float_arg(args, 'end_lat'), _float_arg(args, 'end_lon'))
        radius = args.get('radius')
    if radius is not None and radius != '':
        try:
            radius = float(radius)
        except (TypeError, ValueError):
            raise InvalidCoordinatesError(f"Parameter radius is not a number: {radius!r}")
    else:
        radius = None
    return start, end, radius


@routing_bp.before_request
def _start_timer():
    g.request_started = time.time()


@routing_bp.after_request
def _log_request(response):
    started = g.get('request_started')
    if started is not None:
        logger.log_http_request(request.method, request.path, response.status_code,
                                (time.time() - started) * 1000)
    return response


@routing_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    if route_service is None:
        return jsonify({'status': 'error', 'message': 'Route service not initialized'}), 500
    return jsonify({
        'status': 'healthy',
        'graph': route_service.graph_status(),
        'timestamp': time.time()
    })


@routing_bp.route('/route', methods=['GET', 'POST'])
def route():
    """Shortest path between two points as a GeoJSON LineString"""
    if route_service is None:
        return jsonify({'error': {'code': 'unavailable', 'message': 'Route service not initialized'}}), 503
    try:
        start, end, radius = parse_route_request()
    except InvalidCoordinatesError as e:
        return error_response(e)

    result = route_service.route(start, end, max_snap_radius=radius)
    if not result.ok:
        return error_response(result.error)
    return jsonify(result.route.to_geojson())


def create_app(service: Optional[RouteService] = None, preload: bool = True):
    """Flask app with CORS and the routing blueprint mounted at /routing"""
    app = Flask(__name__)
    CORS(app)
    initialize_route_service(service, preload=preload)
    app.register_blueprint(routing_bp, url_prefix='/routing')
    return app
