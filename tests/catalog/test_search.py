"""Tests for item search ranking."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from app.catalog.search import query_terms, rank, relevance, tokenize
from app.domain import ImageRef, Item, new_id

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_item(name: str, description: str, minutes: int = 0) -> Item:
    """Create an item created ``minutes`` after a fixed base time."""
    return Item(
        id=new_id(),
        name=name,
        description=description,
        image=ImageRef(store_id="pos-catalog/x", url="memory://x"),
        base_amount=Decimal("1"),
        category_id=new_id(),
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


class TestTokenize:
    """Tests for query and text tokenization."""

    def test_lowercases_and_splits(self) -> None:
        """Punctuation separates words."""
        assert tokenize("Iced-Latte, LARGE!") == ["iced", "latte", "large"]

    def test_query_terms_distinct(self) -> None:
        """Repeated terms count once."""
        assert query_terms("tea Tea green") == ["tea", "green"]

    def test_query_terms_empty(self) -> None:
        """Punctuation-only queries have no terms."""
        assert query_terms("?!") == []


class TestRelevance:
    """Tests for relevance scoring."""

    def test_name_outweighs_description(self) -> None:
        """A name match scores 2, a description match 1."""
        in_name = make_item("Green Tea", "Hot drink")
        in_description = make_item("Matcha", "Powdered green tea")
        assert relevance(in_name, ["tea"]) == 2
        assert relevance(in_description, ["tea"]) == 1

    def test_prefix_match(self) -> None:
        """A term matches words that start with it."""
        item = make_item("Cappuccino", "Espresso with foam")
        assert relevance(item, ["capp"]) == 2
        assert relevance(item, ["puccino"]) == 0

    def test_multiple_terms_add_up(self) -> None:
        """Each matching term contributes."""
        item = make_item("Iced Latte", "Cold latte with ice")
        # "ice" in the description does not start with "iced"
        assert relevance(item, ["iced", "latte"]) == 2 + 2 + 1


class TestRank:
    """Tests for result ordering."""

    def test_drops_non_matches(self) -> None:
        """Items without any match are excluded."""
        items = [make_item("Tea", "Hot"), make_item("Bagel", "Bread")]
        assert [i.name for i in rank(items, ["tea"])] == ["Tea"]

    def test_orders_by_score(self) -> None:
        """Higher scores come first."""
        weak = make_item("Matcha", "green tea powder", minutes=5)
        strong = make_item("Tea Latte", "tea with milk", minutes=0)
        assert rank([weak, strong], ["tea"]) == [strong, weak]

    def test_ties_newest_first(self) -> None:
        """Equal scores are ordered by creation time, newest first."""
        old = make_item("Black Tea", "Strong", minutes=0)
        new = make_item("White Tea", "Mild", minutes=10)
        assert rank([old, new], ["tea"]) == [new, old]
