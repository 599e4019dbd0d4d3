"""Central logging configuration for the lending service."""

import logging


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger once; `debug` lowers the level to DEBUG.

    When handlers already exist only the debug level is applied.
    """
    root = logging.getLogger()
    if root.handlers:
        if debug:
            root.setLevel(logging.DEBUG)
        return
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)


def get_logger(name: str) -> logging.Logger:
    """Create or retrieve a module logger."""
    return logging.getLogger(name)
