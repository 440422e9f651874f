from __future__ import annotations

from .accounts import Account, Position
from .categories import Category, category_ids, category_name, category_of, normalize_symbol
from .model_portfolios import ModelPortfolio, ModelStock, find_model_portfolio
from .trades import Trade

__all__ = [
    "Account",
    "Category",
    "ModelPortfolio",
    "ModelStock",
    "Position",
    "Trade",
    "category_ids",
    "category_name",
    "category_of",
    "find_model_portfolio",
    "normalize_symbol",
]
