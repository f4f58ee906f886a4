"""
Tests for the client cart store and pinned preference.
"""

import pytest

from procureflow.client.cart import PINNED_KEY, CartStore, PreferenceStore
from procureflow.database.products import SEED_PRODUCTS

CABLE, SHORT_CABLE, MOUSE = SEED_PRODUCTS


@pytest.fixture
def cart():
    return CartStore()


class TestCartItems:
    """Quantities and derived totals."""

    def test_adding_twice_increments(self, cart):
        cart.add_to_cart(CABLE)
        cart.add_to_cart(CABLE, 2)
        assert len(cart) == 1
        assert cart.get(CABLE.id).quantity == 3

    def test_insertion_order(self, cart):
        cart.add_to_cart(MOUSE)
        cart.add_to_cart(CABLE)
        cart.add_to_cart(MOUSE)
        assert [i.product.id for i in cart.items] == [MOUSE.id, CABLE.id]

    def test_decrement_to_zero_removes(self, cart):
        cart.add_to_cart(CABLE)
        cart.increment(CABLE.id)
        cart.decrement(CABLE.id)
        assert cart.get(CABLE.id).quantity == 1
        cart.decrement(CABLE.id)
        assert cart.get(CABLE.id) is None

    def test_reduce_by_more_than_held(self, cart):
        cart.add_to_cart(CABLE, 2)
        cart.reduce(CABLE.id, 5)
        assert len(cart) == 0

    def test_unknown_ids_are_ignored(self, cart):
        cart.increment("nope")
        cart.decrement("nope")
        cart.remove_from_cart("nope")
        assert len(cart) == 0

    def test_totals(self, cart):
        cart.add_to_cart(CABLE, 2)
        cart.add_to_cart(MOUSE)
        assert cart.total_count == 3
        assert cart.total_amount == pytest.approx(12.99 * 2 + 24.99)

    def test_remove_and_clear(self, cart):
        cart.add_to_cart(CABLE)
        cart.add_to_cart(SHORT_CABLE)
        cart.remove_from_cart(CABLE.id)
        assert [i.product.id for i in cart.items] == [SHORT_CABLE.id]
        cart.clear_cart()
        assert cart.total_count == 0
        assert cart.total_amount == 0


class TestCartPanel:
    """Open, toggle and pin behaviour."""

    def test_first_item_opens_cart(self, cart):
        assert cart.is_open is False
        cart.add_to_cart(CABLE)
        assert cart.is_open is True

    def test_later_items_do_not_reopen(self, cart):
        cart.add_to_cart(CABLE)
        cart.close()
        cart.add_to_cart(MOUSE)
        assert cart.is_open is False

    def test_toggle(self, cart):
        cart.toggle()
        assert cart.is_open is True
        cart.toggle()
        assert cart.is_open is False

    def test_pinned_cart_stays_open_on_toggle(self, cart):
        cart.toggle_pinned()
        assert cart.is_open is True
        cart.toggle()
        assert cart.is_open is True


class TestPreferenceStore:
    """Pinned flag persistence."""

    def test_pinned_survives_restart(self, tmp_path):
        prefs = PreferenceStore(tmp_path / "prefs.json")
        CartStore(prefs).toggle_pinned()
        assert prefs.get(PINNED_KEY) is True
        assert CartStore(PreferenceStore(tmp_path / "prefs.json")).pinned is True

    def test_missing_file_is_not_pinned(self, tmp_path):
        assert CartStore(PreferenceStore(tmp_path / "absent.json")).pinned is False

    def test_unreadable_file_is_not_pinned(self, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text("{broken")
        assert CartStore(PreferenceStore(path)).pinned is False

    def test_set_keeps_other_keys(self, tmp_path):
        prefs = PreferenceStore(tmp_path / "prefs.json")
        prefs.set("theme", "dark")
        prefs.set(PINNED_KEY, True)
        assert prefs.get("theme") == "dark"
