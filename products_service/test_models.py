"""
Unit tests for the in-memory product collection.
Tests filtering, pagination, search, stats and mutations.
"""
import itertools
import threading

import pytest

from products_service.errors import NotFoundError, ValidationError
from products_service.models import ProductCollection

NEW_FIELDS = {
    "name": "Blender",
    "description": "Glass jar blender",
    "price": 75.5,
    "category": "Kitchen",
    "in_stock": True,
}


@pytest.fixture
def products():
    """Fresh seeded collection with predictable ids for created records."""
    counter = itertools.count(100)
    return ProductCollection.seeded(id_factory=lambda: f"gen-{next(counter)}")


class TestListProducts:
    """Tests for category filtering and pagination."""

    def test_defaults_return_everything(self, products):
        items, total, page, limit = products.list_products()
        assert [p.id for p in items] == ["1", "2", "3"]
        assert (total, page, limit) == (3, 1, 10)

    def test_category_filter_is_case_insensitive(self, products):
        items, total, _, _ = products.list_products("ELECTRONICS")
        assert [p.name for p in items] == ["Laptop", "Smartphone"]
        assert total == 2

    def test_total_counts_filtered_set_not_page(self, products):
        items, total, page, limit = products.list_products("electronics", "1", "1")
        assert [p.name for p in items] == ["Laptop"]
        assert (total, page, limit) == (2, 1, 1)

    def test_second_page(self, products):
        items, total, _, _ = products.list_products(None, "2", "2")
        assert [p.id for p in items] == ["3"]
        assert total == 3

    def test_out_of_range_page_is_empty(self, products):
        items, total, _, _ = products.list_products(None, "5", "10")
        assert items == []
        assert total == 3

    @pytest.mark.parametrize("page,limit", [
        (1, 1), (1, 2), (2, 2), (3, 1), (4, 1), (1, 10), (2, 10),
    ])
    def test_page_length_matches_formula(self, products, page, limit):
        items, total, _, _ = products.list_products(None, page, limit)
        assert len(items) == min(limit, max(0, total - (page - 1) * limit))

    def test_unknown_category_is_empty(self, products):
        items, total, _, _ = products.list_products("garden")
        assert items == []
        assert total == 0

    @pytest.mark.parametrize("page,limit", [
        ("0", "10"), ("1", "0"), ("-1", "10"), ("abc", "10"), ("1", "1.5"), ("", "10"),
        ("1_0", "10"), (" 1 ", "10"), ("+2", "10"), ("1", "\u0661"),
    ])
    def test_invalid_pagination_rejected(self, products, page, limit):
        with pytest.raises(ValidationError) as exc_info:
            products.list_products(None, page, limit)
        assert exc_info.value.message == "Page and limit must be positive integers"


class TestGetProduct:
    """Tests for lookups by id."""

    def test_get_existing(self, products):
        assert products.get("2").name == "Smartphone"

    def test_get_is_exact_match(self, products):
        with pytest.raises(NotFoundError) as exc_info:
            products.get(" 1")
        assert exc_info.value.message == "Product not found"


class TestMutations:
    """Tests for create, replace and delete."""

    def test_create_appends_with_generated_id(self, products):
        created = products.create(NEW_FIELDS)
        assert created.id == "gen-100"
        assert created.category == "Kitchen"
        assert products.all()[-1] == created
        assert len(products) == 4

    def test_create_uses_distinct_uuid_ids_by_default(self):
        products = ProductCollection.seeded()
        first = products.create(NEW_FIELDS)
        second = products.create(NEW_FIELDS)
        assert first.id != second.id
        assert first.id not in {"1", "2", "3"}

    def test_replace_keeps_id_and_position(self, products):
        replaced = products.replace("2", NEW_FIELDS)
        assert replaced.id == "2"
        assert [p.id for p in products.all()] == ["1", "2", "3"]
        stored = products.get("2")
        assert stored.name == "Blender"
        assert stored.price == 75.5
        assert stored.in_stock is True

    def test_replace_missing_raises(self, products):
        with pytest.raises(NotFoundError):
            products.replace("missing", NEW_FIELDS)

    def test_delete_removes_exactly_one(self, products):
        removed = products.delete("2")
        assert removed.name == "Smartphone"
        assert [p.id for p in products.all()] == ["1", "3"]
        with pytest.raises(NotFoundError):
            products.get("2")

    def test_delete_missing_raises(self, products):
        with pytest.raises(NotFoundError):
            products.delete("missing")
        assert len(products) == 3


class TestSearchAndStats:
    """Tests for name search and category stats."""

    def test_search_is_case_insensitive_substring(self, products):
        assert [p.name for p in products.search("laptop")] == ["Laptop"]
        assert [p.name for p in products.search("MAKER")] == ["Coffee Maker"]

    def test_search_only_looks_at_name(self, products):
        assert products.search("electronics") == []

    @pytest.mark.parametrize("query", [None, ""])
    def test_search_requires_query(self, products, query):
        with pytest.raises(ValidationError) as exc_info:
            products.search(query)
        assert exc_info.value.message == "Search query (q) is required"

    def test_stats_on_seed(self, products):
        assert products.stats() == {"electronics": 2, "kitchen": 1}

    def test_stats_lowercases_categories(self, products):
        products.create(NEW_FIELDS)
        assert products.stats() == {"electronics": 2, "kitchen": 2}

    def test_stats_empty_collection(self):
        assert ProductCollection().stats() == {}


class TestConcurrency:
    """Concurrent creates and deletes must not lose or duplicate records."""

    def test_parallel_creates_and_deletes(self):
        products = ProductCollection()
        created = [products.create(NEW_FIELDS).id for _ in range(50)]

        def delete(product_id):
            products.delete(product_id)

        def create():
            products.create(NEW_FIELDS)

        threads = [threading.Thread(target=delete, args=(pid,)) for pid in created]
        threads += [threading.Thread(target=create) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        ids = [p.id for p in products.all()]
        assert len(ids) == 50
        assert len(set(ids)) == 50
        assert not set(ids) & set(created)
