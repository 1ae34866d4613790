"""
Logging Configuration

The library only emits records (phase timings at DEBUG, export paths at
INFO); scripts call setup_logging() to see them.
"""
import logging
import sys
from typing import Optional, TextIO, Union

LOGGER_NAME = "shape_tesselator"

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach a single stream handler to the package logger.

    Calling it again replaces the previous handler, so scripts can change
    the level without duplicating output.

    Args:
        level: Logging level or its name (e.g. logging.DEBUG or "DEBUG")
        stream: Destination stream, stderr by default

    Returns:
        The package logger
    """
    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {name}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)

    return logger
