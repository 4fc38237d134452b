"""Logging setup for the command-line entry point."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
    )
