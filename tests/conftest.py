import hashlib
import hmac
import os
import time
from typing import Any, Dict, Generator, Optional

# Base en mémoire et pas de Redis pour toute la session de tests
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS"] = "1"
os.environ.pop("LOCAL_RATE_LIMIT_FALLBACK", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from backend.app import app as fastapi_app
from backend.errors import PaymentGatewayError
from backend.infra.database import Database, get_database
from backend.models.db import CartRow, OrderRow, ProductRow
from backend.payments.stripe_client import get_payment_client
from backend.utils.security import require_user

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakePaymentClient:
    """Remplace StripePaymentClient: enregistre les appels, aucun accès réseau."""

    def __init__(self):
        self.created = []
        self.retrieved = []
        self.fail = False
        self._counter = 0

    def create_payment_intent(self, *, amount, currency, metadata, idempotency_key=None):
        if self.fail:
            raise PaymentGatewayError("Stripe indisponible")
        self._counter += 1
        intent = {
            "id": f"pi_test_{self._counter}",
            "client_secret": f"pi_test_{self._counter}_secret_abc",
            "status": "requires_payment_method",
        }
        self.created.append({
            "amount": amount,
            "currency": currency,
            "metadata": metadata,
            "idempotency_key": idempotency_key,
            "intent": intent,
        })
        return intent

    def retrieve_payment_intent(self, intent_id):
        if self.fail:
            raise PaymentGatewayError("Stripe indisponible")
        self.retrieved.append(intent_id)
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_abc", "status": "requires_payment_method"}


class Store:
    """Accès direct aux tables pour préparer et vérifier l'état des tests."""

    def __init__(self, db: Database):
        self.db = db

    def add_product(self, name: str = "Produit", price: float = 10.0, stock: int = 5) -> str:
        def _tx(session):
            product = ProductRow(name=name, price=price, stock=stock)
            session.add(product)
            session.flush()
            return product.id
        return self.db.with_transaction(_tx)

    def product(self, product_id: str) -> Optional[Dict[str, Any]]:
        def _tx(session):
            p = session.get(ProductRow, product_id)
            return None if p is None else {"id": p.id, "name": p.name, "price": p.price, "stock": p.stock}
        return self.db.with_transaction(_tx)

    def set_price(self, product_id: str, price: float) -> None:
        def _tx(session):
            session.get(ProductRow, product_id).price = price
        self.db.with_transaction(_tx)

    def set_stock(self, product_id: str, stock: int) -> None:
        def _tx(session):
            session.get(ProductRow, product_id).stock = stock
        self.db.with_transaction(_tx)

    def delete_product(self, product_id: str) -> None:
        def _tx(session):
            session.delete(session.get(ProductRow, product_id))
        self.db.with_transaction(_tx)

    def cart(self, user_id: str) -> Optional[Dict[str, Any]]:
        def _tx(session):
            c = session.execute(select(CartRow).where(CartRow.user_id == user_id)).scalar_one_or_none()
            return None if c is None else {"items": list(c.items), "totalPrice": c.total_price}
        return self.db.with_transaction(_tx)

    def order(self, order_id: str) -> Optional[Dict[str, Any]]:
        def _tx(session):
            o = session.get(OrderRow, order_id)
            if o is None:
                return None
            return {
                "id": o.id,
                "user": o.user_id,
                "items": list(o.items),
                "totalAmount": o.total_amount,
                "paymentStatus": o.payment_status,
                "externalPaymentReference": o.external_payment_reference,
            }
        return self.db.with_transaction(_tx)

    def orders_count(self) -> int:
        return self.db.with_transaction(lambda session: len(session.execute(select(OrderRow)).scalars().all()))


def sign_stripe_payload(payload: str, secret: str, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature (schéma v1: HMAC-SHA256 de "<t>.<payload>")."""
    ts = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture()
def db() -> Generator[Database, None, None]:
    database = Database("sqlite+pysqlite:///:memory:")
    database.create_all()
    try:
        yield database
    finally:
        database.dispose()

@pytest.fixture()
def store(db) -> Store:
    return Store(db)

@pytest.fixture()
def payment_client() -> FakePaymentClient:
    return FakePaymentClient()

@pytest.fixture()
def address() -> Dict[str, str]:
    return {"street": "1 rue de la Paix", "city": "Paris", "state": "IDF", "zipCode": "75002"}

@pytest.fixture()
def sign():
    return sign_stripe_payload

@pytest.fixture(scope="session")
def app():
    return fastapi_app

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture()
def current_user() -> Dict[str, Any]:
    return {"id": "test-user", "email": "test@example.com", "role": "user", "token": "fake-token"}

@pytest.fixture()
def client(app, db, payment_client, current_user) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    app.dependency_overrides[require_user] = lambda: current_user
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

@pytest.fixture()
def anonymous_client(app, db, payment_client) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
