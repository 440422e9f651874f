"""
Serialization of comparison results for download.

JSON exports are pretty-printed with full precision. CSV exports flatten one
row per suggestion or position; the stdlib ``csv`` writer quotes any field
containing a comma, quote or newline and doubles embedded quotes.
"""

import csv
import dataclasses
import io
import json
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import structlog

from portfolio_tracker.domain import Account, Category, ModelPortfolio
from portfolio_tracker.domain.categories import category_name, category_of
from portfolio_tracker.services.pricing import price_for
from portfolio_tracker.services.rebalancing.dataclasses import (
    AllocationComparison,
    CategoryAction,
    Suggestion,
)
from portfolio_tracker.utils.formatting import money

logger = structlog.get_logger(__name__)

SUGGESTION_COLUMNS = [
    "Symbol",
    "Action",
    "Shares",
    "Value",
    "Category",
    "CurrentAllocation",
    "TargetAllocation",
    "Deviation",
]
POSITION_COLUMNS = ["Account", "Symbol", "Shares", "Price", "Value", "Category"]


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: Any) -> str:
    """Pretty-print a payload (dicts, dataclasses, Decimals, datetimes) as JSON."""
    return json.dumps(payload, indent=2, default=_default)


def comparison_payload(
    model_portfolio: ModelPortfolio | None,
    comparison: AllocationComparison,
    actions: Sequence[CategoryAction] = (),
    suggestions: Sequence[Suggestion] = (),
) -> dict[str, Any]:
    """Export structure for a model vs current comparison."""
    return {
        "modelPortfolio": model_portfolio,
        "currentAllocation": comparison.current_allocation,
        "modelAllocation": comparison.model_allocation,
        "deviations": comparison.deviations,
        "rebalanceActions": list(actions),
        "specificSuggestions": list(suggestions),
        "totalPortfolioValue": comparison.total_value,
    }


def rows_to_csv(rows: Iterable[Mapping[str, Any]], columns: Sequence[str]) -> str:
    """Write rows as CSV text with a header line and CRLF line endings."""
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(columns),
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
        extrasaction="ignore",
    )
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def suggestion_rows(suggestions: Iterable[Suggestion]) -> list[dict[str, Any]]:
    return [
        {
            "Symbol": s.symbol,
            "Action": s.action,
            "Shares": s.shares,
            "Value": money(s.value),
            "Category": s.category_name,
            "CurrentAllocation": f"{s.current_percentage:.2f}%",
            "TargetAllocation": f"{s.target_percentage:.2f}%",
            "Deviation": f"{s.deviation:.2f}%",
        }
        for s in suggestions
    ]


def suggestions_to_csv(suggestions: Iterable[Suggestion]) -> str:
    rows = suggestion_rows(suggestions)
    logger.debug("suggestions_exported", row_count=len(rows))
    return rows_to_csv(rows, SUGGESTION_COLUMNS)


def position_rows(
    accounts: Iterable[Account],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    categories: Iterable[Category],
) -> list[dict[str, Any]]:
    categories = list(categories)
    known_ids = [c.id for c in categories]
    rows = []
    for account in accounts:
        for position in account.positions:
            price = price_for(prices, position.symbol)
            category_id = category_of(position.symbol, stock_categories, known_ids)
            rows.append(
                {
                    "Account": account.name,
                    "Symbol": position.symbol,
                    "Shares": f"{position.shares:g}",
                    "Price": money(price),
                    "Value": money(price * Decimal(str(position.shares))),
                    "Category": category_name(category_id, categories),
                }
            )
    return rows


def positions_to_csv(
    accounts: Iterable[Account],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    categories: Iterable[Category],
) -> str:
    return rows_to_csv(
        position_rows(accounts, stock_categories, prices, categories), POSITION_COLUMNS
    )


def export_filename(
    prefix: str, model_name: str, on: date | None = None, extension: str = "json"
) -> str:
    """e.g. ``portfolio-comparison-Growth-2024-05-01.json``."""
    on = on or date.today()
    return f"{prefix}-{model_name}-{on.isoformat()}.{extension}"
