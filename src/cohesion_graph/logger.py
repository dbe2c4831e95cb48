"""Logging configuration for the cohesion graph."""

import logging
import sys


LOGGER_NAME = "cohesion_graph"


class CohesionGraphLogger:
    """Logger configuration for the cohesion graph.

    Reports go to stdout, so log records are written to stderr.
    """

    def __init__(self, name: str = LOGGER_NAME, level: str = "INFO"):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        # Avoid duplicate handlers
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(handler)

    def debug(self, message: str, *args, **kwargs):
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self.logger.error(message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        self.logger.exception(message, *args, **kwargs)


_logger = CohesionGraphLogger()


def get_logger() -> CohesionGraphLogger:
    """Get the global logger instance."""
    return _logger


def set_log_level(level: str):
    """Set the global log level."""
    _logger.logger.setLevel(getattr(logging, level.upper()))
