"""
Tests for categories and symbol-to-category resolution.

Tests: portfolio_tracker/domain/categories.py
"""

import pytest

from portfolio_tracker.domain import Category, category_ids, category_name, category_of
from portfolio_tracker.exceptions import CategoryError
from portfolio_tracker.types import UNCATEGORIZED


@pytest.mark.domain
@pytest.mark.unit
class TestCategory:
    def test_reserved_id_rejected(self) -> None:
        with pytest.raises(CategoryError, match="reserved"):
            Category(id=UNCATEGORIZED, name="Anything")

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(CategoryError):
            Category(id="", name="Nameless")

    def test_category_ids_end_with_uncategorized(self, categories) -> None:
        assert category_ids(categories) == ["tech", "finance", UNCATEGORIZED]

    def test_category_name_falls_back_to_uncategorized_label(self, categories) -> None:
        assert category_name("tech", categories) == "Technology"
        assert category_name(UNCATEGORIZED, categories) == "Uncategorized"


@pytest.mark.domain
@pytest.mark.unit
class TestCategoryOf:
    def test_mapped_symbol(self) -> None:
        assert category_of("aapl", {"AAPL": "tech"}) == "tech"

    def test_unmapped_symbol_is_uncategorized(self) -> None:
        assert category_of("VTI", {"AAPL": "tech"}) == UNCATEGORIZED

    def test_mapping_to_deleted_category_is_uncategorized(self) -> None:
        """A stale mapping must not create a phantom category."""
        assert category_of("AAPL", {"AAPL": "gone"}, ["tech", "finance"]) == UNCATEGORIZED
