# ext_utils/logging_setup.py
import logging
from typing import Literal

Level = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(level: Level = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def level_from_flags(quiet: bool = False, verbose: bool = False) -> Level:
    """Map CLI verbosity flags to a level. --quiet wins over --verbose."""
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"
