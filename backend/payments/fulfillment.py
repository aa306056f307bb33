"""Exécution d'une commande payée (webhook payment_intent.succeeded).

Une seule transaction:
  1) retrouver la commande par external_payment_reference (OrderNotFound sinon)
  2) commande déjà traitée -> livraison en double, succès sans effet
  3-4) pour chaque ligne: relire le stock, vérifier, décrémenter
  5) pending -> completed
  6) vider le panier de l'utilisateur
Tout échec annule l'ensemble: commande 'pending', stock intact, l'événement
peut être relivré plus tard par Stripe.
"""
from typing import Any, Dict
import logging

from sqlalchemy.orm import Session

from backend.cart import service as cart_service
from backend.errors import DomainError, OrderNotFound, ValidationError
from backend.infra.database import Database
from backend.inventory import repository as inventory
from backend.orders import repository as orders_repository
from backend.orders.models import PaymentStatus, can_transition

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"

def _duplicate(order_id: str, status: str) -> Dict[str, Any]:
    return {"orderId": order_id, "status": "duplicate", "paymentStatus": status}

def handle_payment_succeeded(db: Database, external_reference: str) -> Dict[str, Any]:
    """
    Marque la commande payée et décrémente le stock (idempotent).
    Retour: {"orderId", "status": "completed"|"duplicate", "paymentStatus"}
    Erreurs: OrderNotFound, ProductMissing, InsufficientStock, PersistenceError.
    """
    reference = str(external_reference or "").strip()
    if not reference:
        raise ValidationError("Référence de paiement manquante")

    def _tx(session: Session) -> Dict[str, Any]:
        order = orders_repository.get_by_reference(session, reference, for_update=True)
        if order is None:
            raise OrderNotFound(f"Commande introuvable pour la référence {reference}")
        if not can_transition(order.payment_status, PaymentStatus.COMPLETED.value):
            return _duplicate(order.id, order.payment_status)
        # UPDATE conditionnel: une livraison concurrente du même événement perd ici
        if not orders_repository.claim_completion(session, order.id):
            return _duplicate(order.id, PaymentStatus.COMPLETED.value)

        for line in order.items:
            inventory.check_and_decrement(session, line["product"], int(line["quantity"]))

        cart_service.clear(session, order.user_id)
        return {"orderId": order.id, "status": "completed", "paymentStatus": PaymentStatus.COMPLETED.value}

    try:
        result = db.with_transaction(_tx)
    except OrderNotFound:
        logger.error("fulfillment.order_not_found reference=%s", reference)
        raise
    except DomainError as e:
        logger.error("fulfillment.aborted reference=%s error=%s message=%s", reference, type(e).__name__, e.message)
        raise

    if result["status"] == "duplicate":
        logger.info("fulfillment.duplicate reference=%s order_id=%s", reference, result["orderId"])
    else:
        logger.info("fulfillment.completed reference=%s order_id=%s", reference, result["orderId"])
    return result

def handle_event(db: Database, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Aiguille un événement Stripe déjà authentifié.
    - payment_intent.succeeded: data.object.id == Order.external_payment_reference
    - autres types: ignorés (accusé de réception seulement)
    """
    event_type = (event or {}).get("type")
    if event_type != PAYMENT_SUCCEEDED:
        return {"status": "ignored", "type": event_type}
    intent = ((event.get("data") or {}).get("object")) or {}
    return handle_payment_succeeded(db, intent.get("id"))
