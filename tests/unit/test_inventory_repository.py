import pytest

from backend.errors import InsufficientStock, ProductMissing
from backend.inventory import repository as inventory


def test_check_and_decrement_returns_remaining(db, store):
    pid = store.add_product(stock=5)
    assert db.with_transaction(lambda s: inventory.check_and_decrement(s, pid, 3)) == 2
    assert store.product(pid)["stock"] == 2

def test_check_and_decrement_exact_stock(db, store):
    pid = store.add_product(stock=2)
    assert db.with_transaction(lambda s: inventory.check_and_decrement(s, pid, 2)) == 0

def test_check_and_decrement_never_negative(db, store):
    pid = store.add_product(stock=2)
    with pytest.raises(InsufficientStock):
        db.with_transaction(lambda s: inventory.check_and_decrement(s, pid, 3))
    assert store.product(pid)["stock"] == 2

def test_check_and_decrement_missing_product(db):
    with pytest.raises(ProductMissing):
        db.with_transaction(lambda s: inventory.check_and_decrement(s, "nope", 1))

def test_get_products_map_skips_unknown(db, store):
    pid = store.add_product()
    found = db.with_transaction(lambda s: list(inventory.get_products_map(s, [pid, "nope", ""]).keys()))
    assert found == [pid]
