"""
Cas d'usage 'payments': ouverture d'un paiement externe pour une commande 'pending'.
L'appel Stripe fait foi; la référence stockée sur la commande sert à la corrélation
avec le webhook (backend.payments.fulfillment).
"""
from typing import Any, Dict, Optional, Protocol
import logging

from backend import config
from backend.errors import InvalidAmount, NotFound, ValidationError
from backend.infra.database import Database
from backend.orders import models as order_models
from backend.orders import repository as orders_repository
from .stripe_client import to_minor_units

logger = logging.getLogger(__name__)


class PaymentClient(Protocol):
    def create_payment_intent(
        self, *, amount: int, currency: str, metadata: Dict[str, str], idempotency_key: Optional[str] = None
    ) -> Dict[str, Any]: ...

    def retrieve_payment_intent(self, intent_id: str) -> Dict[str, Any]: ...


def _load_pending_order(db: Database, order_id: str, user_id: str) -> Dict[str, Any]:
    def _tx(session):
        order = orders_repository.get_user_order(session, order_id, user_id)
        if order is None:
            raise NotFound("Commande introuvable")
        order_models.ensure_pending(order)
        return order_models.to_order_dict(order)
    return db.with_transaction(_tx)

def _intent_result(intent: Dict[str, Any]) -> Dict[str, Any]:
    return {"externalReference": intent["id"], "clientSecret": intent["client_secret"]}

def create_intent(
    db: Database,
    payment_client: PaymentClient,
    order_id: str,
    user_id: str,
    currency: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ouvre (ou reprend) le paiement externe d'une commande.
    - NotFound: commande absente ou d'un autre utilisateur
    - AlreadyProcessed: commande non 'pending'
    - InvalidAmount: total <= 0
    - PaymentGatewayError: échec Stripe (commande inchangée, retry possible)
    Retour: {"externalReference": "pi_...", "clientSecret": "..."}
    """
    order_id = str(order_id or "").strip()
    if not order_id:
        raise ValidationError("orderId requis")
    currency = (currency or config.PAYMENT_CURRENCY).lower()

    order = _load_pending_order(db, order_id, user_id)
    if not order["totalAmount"] or order["totalAmount"] <= 0:
        raise InvalidAmount()

    # Référence déjà posée: on reprend le même paiement, jamais de seconde charge
    if order["externalPaymentReference"]:
        intent = payment_client.retrieve_payment_intent(order["externalPaymentReference"])
        return _intent_result(intent)

    intent = payment_client.create_payment_intent(
        amount=to_minor_units(order["totalAmount"], currency),
        currency=currency,
        metadata={"orderId": order_id, "userId": str(user_id)},
        idempotency_key=f"order-{order_id}-payment-intent",
    )

    stored = db.with_transaction(lambda session: orders_repository.set_payment_reference(session, order_id, intent["id"]))
    if not stored:
        # Requête concurrente: garder la référence déjà enregistrée
        current = _load_pending_order(db, order_id, user_id)
        reference = current["externalPaymentReference"]
        if reference and reference != intent["id"]:
            logger.warning("payments.create_intent reference already set order_id=%s kept=%s dropped=%s", order_id, reference, intent["id"])
            intent = payment_client.retrieve_payment_intent(reference)
    else:
        logger.info("payments.create_intent order_id=%s reference=%s amount=%s %s", order_id, intent["id"], order["totalAmount"], currency)
    return _intent_result(intent)
