"""Project-wide logger shared by the server, workers, client and registry."""
import logging
import sys
from typing import Union

LOGGER_NAME = "compute_tools"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(processName)s: %(message)s"


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """
    Return the named logger, attaching a stderr handler the first time.

    :param str name: Logger name

    :return: Configured logger
    :rtype: logging.Logger
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        log.addHandler(handler)
        log.setLevel(logging.INFO)
    return log


def set_level(level: Union[int, str]) -> None:
    """Change the level of the project logger (e.g. "DEBUG" or logging.WARNING)."""
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)


logger: logging.Logger = get_logger()
