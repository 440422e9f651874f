"""Type definitions shared by the allocation and rebalancing services."""

from decimal import Decimal
from typing import Literal, TypeAlias

UNCATEGORIZED = "uncategorized"
UNCATEGORIZED_LABEL = "Uncategorized"

# Type aliases
AllocationMap: TypeAlias = dict[str, float]  # {category_id: percent of portfolio value}
DeviationMap: TypeAlias = dict[str, float]  # {category_id: current_pct - model_pct}
PriceMap: TypeAlias = dict[str, Decimal]  # {symbol: price}
StockCategoryMap: TypeAlias = dict[str, str]  # {symbol: category_id}

OrderAction: TypeAlias = Literal["BUY", "SELL"]
TradeAction: TypeAlias = Literal["buy", "sell"]
