"""
Custom exceptions for the georouting engine
"""


class GeoRoutingError(Exception):
    """Base exception for the georouting engine"""
    pass


class RouteError(GeoRoutingError):
    """User-facing routing failure, returned as a typed result by the query facade"""
    code = 'route_error'


class AdapterFailureError(RouteError):
    """Raised when the geometry store cannot be reached or returns malformed data"""
    code = 'adapter_failure'


class NodeNotFoundError(RouteError):
    """Raised when no graph vertex lies within the snap radius of a query point"""
    code = 'node_not_found'

    def __init__(self, message: str, endpoint: str = None, radius: float = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.radius = radius


class PathNotFoundError(RouteError):
    """Raised when both endpoints resolved but no connecting path exists"""
    code = 'path_not_found'


class SearchLimitExceededError(PathNotFoundError):
    """Raised when the search gives up after its expansion budget or time limit"""
    code = 'search_limit_exceeded'


class SearchCancelledError(PathNotFoundError):
    """Raised when the caller cancelled the search"""
    code = 'search_cancelled'


class InvalidCoordinatesError(RouteError):
    """Raised when coordinates are invalid or out of bounds"""
    code = 'invalid_input'


class GraphInvariantError(GeoRoutingError):
    """Raised when the graph or a path breaks a structural invariant"""
    pass


class ConfigError(GeoRoutingError):
    """Raised when configuration values are invalid"""
    pass
