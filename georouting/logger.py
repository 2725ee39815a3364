"""
Logging configuration for the georouting engine
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional

from .config import config


class GeoRoutingLogger:
    """Centralized logging for the georouting engine"""

    def __init__(self, name: str = "georouting", level: int = logging.INFO, log_dir: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.log_dir = log_dir

        # Prevent duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Setup console and file handlers"""
        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_format = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(console_format)
        self.logger.addHandler(console_handler)

        if not self.log_dir:
            return

        # File handler
        os.makedirs(self.log_dir, exist_ok=True)
        log_file = os.path.join(self.log_dir, f'georouting_{datetime.now().strftime("%Y%m%d")}.log')
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        )
        file_handler.setFormatter(file_format)
        self.logger.addHandler(file_handler)

    def info(self, message: str):
        """Log info message"""
        self.logger.info(message)

    def debug(self, message: str):
        """Log debug message"""
        self.logger.debug(message)

    def warning(self, message: str):
        """Log warning message"""
        self.logger.warning(message)

    def error(self, message: str):
        """Log error message"""
        self.logger.error(message)

    def critical(self, message: str):
        """Log critical message"""
        self.logger.critical(message)

    def log_route_request(self, origin: tuple, destination: tuple, duration_ms: float,
                          success: bool, outcome: str = 'ok'):
        """Log route request metrics"""
        self.info(f"Route request: {origin} -> {destination}, "
                  f"duration={duration_ms:.2f}ms, success={success}, outcome={outcome}")

    def log_graph_build(self, nodes: int, edges: int, duration_ms: float):
        """Log graph build metrics"""
        self.info(f"Graph build: nodes={nodes}, edges={edges}, duration={duration_ms:.2f}ms")

    def log_http_request(self, method: str, path: str, status: int, duration_ms: float):
        """Log HTTP request metrics"""
        self.info(f"HTTP {method} {path} -> {status} in {duration_ms:.2f}ms")


# Global logger instance
logger = GeoRoutingLogger(level=getattr(logging, config.log_level.upper(), logging.INFO),
                          log_dir=config.log_dir)
