__title__ = 'georouting'
__version__ = '1.0.0'
__author__ = 'GeoRouting Team'
__license__ = 'MIT'

__all__ = ['core_route_service', 'config', 'logger', 'exceptions', 'Coordinate', 'Route', 'RouteService']

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())

from .models.geometry import Coordinate, Route  # noqa: E402
from .core_route_service import RouteService, RouteResult  # noqa: E402
