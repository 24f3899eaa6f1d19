"""
Tests for SQLite history/favorites storage.
Uses a temp database for each test.
"""

import math

import pytest

from swapunits.storage.models import FavoriteItem, HistoryItem
from swapunits.storage.sqlite_store import SQLiteStore


@pytest.fixture
def store(tmp_path):
    """Create a fresh SQLite store for each test."""
    return SQLiteStore(str(tmp_path / "test.db"))


@pytest.fixture
def small_store(tmp_path):
    return SQLiteStore(str(tmp_path / "small.db"), max_history=3, max_favorites=2)


def _history(n: float, category="Length", from_unit="m", to_unit="ft") -> HistoryItem:
    return HistoryItem(category=category, from_value=n, from_unit=from_unit, to_value=n * 3.28, to_unit=to_unit)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

def test_history_item_defaults():
    item = HistoryItem(category="Mass", from_value=1, from_unit="kg", to_value=1000, to_unit="g")
    assert item.id
    assert item.timestamp


def test_history_item_to_dict_infinity():
    item = HistoryItem(category="Fuel Economy", from_value=0, from_unit="L/100km",
                       to_value=math.inf, to_unit="km/L")
    assert item.to_dict()["to_value"] == "Infinity"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def test_store_and_retrieve(store):
    store.add_history_item(_history(1))
    items = store.get_history()
    assert len(items) == 1
    assert items[0].category == "Length"
    assert items[0].from_value == 1
    assert items[0].to_unit == "ft"


def test_history_newest_first(store):
    for n in (1, 2, 3):
        store.add_history_item(_history(n))
    assert [i.from_value for i in store.get_history()] == [3, 2, 1]


def test_history_capped(small_store):
    for n in range(5):
        small_store.add_history_item(_history(n))
    assert [i.from_value for i in small_store.get_history()] == [4, 3, 2]
    assert small_store.get_stats()["history"] == 3


def test_history_default_cap_is_fifteen(store):
    for n in range(20):
        store.add_history_item(_history(n))
    assert len(store.get_history()) == 15


def test_history_infinity_round_trip(store):
    store.add_history_item(HistoryItem(category="Fuel Economy", from_value=0, from_unit="L/100km",
                                       to_value=math.inf, to_unit="km/L"))
    assert store.get_history()[0].to_value == math.inf


def test_clear_history(store):
    store.add_history_item(_history(1))
    store.add_history_item(_history(2))
    assert store.clear_history() == 2
    assert store.get_history() == []


# ---------------------------------------------------------------------------
# Favorites
# ---------------------------------------------------------------------------

def test_add_favorite(store):
    fav = store.add_favorite(FavoriteItem(category="Length", from_unit="m", to_unit="ft", name="Meter to Feet"))
    assert fav is not None
    favorites = store.get_favorites()
    assert len(favorites) == 1
    assert favorites[0].id == fav.id
    assert favorites[0].name == "Meter to Feet"


def test_duplicate_favorite_rejected(store):
    store.add_favorite(FavoriteItem(category="Length", from_unit="m", to_unit="ft", name="a"))
    dup = store.add_favorite(FavoriteItem(category="Length", from_unit="m", to_unit="ft", name="b"))
    assert dup is None
    assert len(store.get_favorites()) == 1


def test_reverse_pair_is_not_duplicate(store):
    store.add_favorite(FavoriteItem(category="Length", from_unit="m", to_unit="ft", name="a"))
    assert store.add_favorite(FavoriteItem(category="Length", from_unit="ft", to_unit="m", name="b"))


def test_favorites_capped(small_store):
    for to_unit in ("ft", "km", "mi"):
        small_store.add_favorite(FavoriteItem(category="Length", from_unit="m", to_unit=to_unit, name=to_unit))
    assert [f.to_unit for f in small_store.get_favorites()] == ["mi", "km"]


def test_remove_favorite(store):
    fav = store.add_favorite(FavoriteItem(category="Mass", from_unit="kg", to_unit="lb", name="x"))
    assert store.remove_favorite(fav.id) is True
    assert store.remove_favorite(fav.id) is False
    assert store.get_favorites() == []


def test_clear_favorites(store):
    store.add_favorite(FavoriteItem(category="Mass", from_unit="kg", to_unit="lb", name="x"))
    assert store.clear_favorites() == 1
    assert store.get_favorites() == []


def test_stats(store):
    store.add_history_item(_history(1))
    store.add_history_item(_history(2))
    store.add_history_item(_history(3, category="Mass", from_unit="kg", to_unit="g"))
    store.add_favorite(FavoriteItem(category="Mass", from_unit="kg", to_unit="lb", name="x"))

    stats = store.get_stats()
    assert stats["history"] == 3
    assert stats["favorites"] == 1
    assert stats["history_by_category"] == {"Length": 2, "Mass": 1}
