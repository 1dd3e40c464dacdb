"""
Console logging for flash-arb runs.

Usage:
    from flash_arbitrage import logging_config
    logging_config.setup()
"""

import logging
import sys

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s:%(lineno)d | %(message)s"


def setup(level=logging.INFO, fmt=CONSOLE_FORMAT):
    """
    Send analyzer logs to stdout with short HH:MM:SS timestamps.

    Any handlers installed earlier on the root logger are replaced, so
    calling this twice does not duplicate lines.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("flash_arbitrage").setLevel(level)


def setup_minimal():
    """
    Warnings and errors only.
    Use when stdout carries --json output.
    """
    setup(level=logging.WARNING)


def setup_debug():
    """Per-route evaluation detail, tagged with the emitting module."""
    setup(level=logging.DEBUG, fmt=DEBUG_FORMAT)
