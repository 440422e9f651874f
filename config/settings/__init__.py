"""
Settings for portfolio-tracker.

Values come from the environment (optionally a ``.env`` file) and are read
once at import time.

Usage:
    from config import settings

    threshold = settings.REBALANCE_DEVIATION_THRESHOLD
"""

from .base import *  # noqa: F403
