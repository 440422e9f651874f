"""
Base settings for the allocation and rebalancing engine.
"""

import os

from dotenv import load_dotenv

load_dotenv()

DEBUG = os.getenv("DEBUG", "False") == "True"
LOG_LEVEL = os.getenv("LOG_LEVEL") or None

# Configure logging early (before any engine module logs)
from config.logging import configure_logging  # noqa: E402

configure_logging(debug=DEBUG, level=LOG_LEVEL)

# Category deviations (percentage points) below this are treated as noise by
# the sell-buy and buy-only rebalancers.
REBALANCE_DEVIATION_THRESHOLD = float(os.getenv("REBALANCE_DEVIATION_THRESHOLD", "0.5"))

# Category-level Buy/Sell actions are listed only above this deviation.
CATEGORY_ACTION_THRESHOLD = float(os.getenv("CATEGORY_ACTION_THRESHOLD", "1.0"))

# Symbol-level drift suggestions
SYMBOL_DRIFT_THRESHOLD = float(os.getenv("SYMBOL_DRIFT_THRESHOLD", "1.0"))
SYMBOL_MIN_BUY_VALUE = float(os.getenv("SYMBOL_MIN_BUY_VALUE", "100"))

# Tolerance for "sums to 100" checks on percentages
PERCENT_TOLERANCE = float(os.getenv("PERCENT_TOLERANCE", "0.01"))
