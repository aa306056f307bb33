import pytest

from backend.cart import service as cart_service
from backend.errors import InsufficientStock, OrderNotFound, ProductMissing, ValidationError
from backend.orders import repository as orders_repository
from backend.orders import service as orders_service
from backend.payments import fulfillment
from backend.payments import service as payments_service


@pytest.fixture()
def paid_order(db, store, address, payment_client):
    """Commande 'pending' avec référence Stripe, produit stock=5 prix=10, quantité 3."""
    pid = store.add_product(price=10.0, stock=5)
    cart_service.add_item(db, "u1", pid, 3)
    order = orders_service.checkout(db, "u1", address)
    intent = payments_service.create_intent(db, payment_client, order["id"], "u1")
    return {"order_id": order["id"], "product_id": pid, "reference": intent["externalReference"]}

def test_fulfillment_completes_order_and_decrements(db, store, paid_order):
    result = fulfillment.handle_payment_succeeded(db, paid_order["reference"])

    assert result == {"orderId": paid_order["order_id"], "status": "completed", "paymentStatus": "completed"}
    assert store.order(paid_order["order_id"])["paymentStatus"] == "completed"
    assert store.product(paid_order["product_id"])["stock"] == 2

def test_fulfillment_is_idempotent(db, store, paid_order):
    fulfillment.handle_payment_succeeded(db, paid_order["reference"])
    again = fulfillment.handle_payment_succeeded(db, paid_order["reference"])

    assert again["status"] == "duplicate"
    assert store.product(paid_order["product_id"])["stock"] == 2
    assert store.order(paid_order["order_id"])["paymentStatus"] == "completed"

def test_fulfillment_clears_cart_filled_after_checkout(db, store, paid_order):
    other = store.add_product(name="Autre", price=1.0, stock=10)
    cart_service.add_item(db, "u1", other, 1)
    fulfillment.handle_payment_succeeded(db, paid_order["reference"])
    assert store.cart("u1") == {"items": [], "totalPrice": 0.0}

def test_fulfillment_insufficient_stock_rolls_back(db, store, paid_order):
    store.set_stock(paid_order["product_id"], 2)
    with pytest.raises(InsufficientStock):
        fulfillment.handle_payment_succeeded(db, paid_order["reference"])

    assert store.order(paid_order["order_id"])["paymentStatus"] == "pending"
    assert store.product(paid_order["product_id"])["stock"] == 2

def test_fulfillment_partial_decrement_rolled_back(db, store, address, payment_client):
    a = store.add_product(name="A", price=1.0, stock=5)
    b = store.add_product(name="B", price=1.0, stock=5)
    cart_service.add_item(db, "u1", a, 2)
    cart_service.add_item(db, "u1", b, 2)
    order = orders_service.checkout(db, "u1", address)
    ref = payments_service.create_intent(db, payment_client, order["id"], "u1")["externalReference"]
    store.set_stock(b, 1)

    with pytest.raises(InsufficientStock):
        fulfillment.handle_payment_succeeded(db, ref)
    # le décrément de A est annulé avec le reste de la transaction
    assert store.product(a)["stock"] == 5
    assert store.product(b)["stock"] == 1
    assert store.order(order["id"])["paymentStatus"] == "pending"

def test_fulfillment_product_missing(db, store, paid_order):
    store.delete_product(paid_order["product_id"])
    with pytest.raises(ProductMissing):
        fulfillment.handle_payment_succeeded(db, paid_order["reference"])
    assert store.order(paid_order["order_id"])["paymentStatus"] == "pending"

def test_fulfillment_retry_after_restock(db, store, paid_order):
    store.set_stock(paid_order["product_id"], 1)
    with pytest.raises(InsufficientStock):
        fulfillment.handle_payment_succeeded(db, paid_order["reference"])
    store.set_stock(paid_order["product_id"], 4)
    result = fulfillment.handle_payment_succeeded(db, paid_order["reference"])
    assert result["status"] == "completed"
    assert store.product(paid_order["product_id"])["stock"] == 1

def test_fulfillment_unknown_reference(db):
    with pytest.raises(OrderNotFound):
        fulfillment.handle_payment_succeeded(db, "pi_unknown")

def test_fulfillment_empty_reference(db):
    with pytest.raises(ValidationError):
        fulfillment.handle_payment_succeeded(db, "")

def test_claim_completion_only_once(db, paid_order):
    first = db.with_transaction(lambda s: orders_repository.claim_completion(s, paid_order["order_id"]))
    second = db.with_transaction(lambda s: orders_repository.claim_completion(s, paid_order["order_id"]))
    assert first is True
    assert second is False

def test_set_payment_reference_only_once(db, paid_order):
    assert not db.with_transaction(
        lambda s: orders_repository.set_payment_reference(s, paid_order["order_id"], "pi_other")
    )

def test_handle_event_dispatches_succeeded(db, store, paid_order):
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": paid_order["reference"]}}}
    assert fulfillment.handle_event(db, event)["status"] == "completed"
    assert store.product(paid_order["product_id"])["stock"] == 2

def test_handle_event_ignores_other_types(db, store, paid_order):
    event = {"type": "payment_intent.payment_failed", "data": {"object": {"id": paid_order["reference"]}}}
    assert fulfillment.handle_event(db, event) == {"status": "ignored", "type": "payment_intent.payment_failed"}
    assert store.order(paid_order["order_id"])["paymentStatus"] == "pending"
