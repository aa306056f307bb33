# module backend.orders.models
"""Agrégat Commande.
- Lignes figées au checkout: {product, quantity, price} (le prix n'est jamais recalculé).
- Statut de paiement: machine à états pending -> completed (seule transition définie).
- Adresse de livraison: street, city, state, zipCode tous requis et non vides.
"""
from enum import Enum
from typing import Any, Dict, List, Mapping

from backend.errors import AlreadyProcessed, InvalidAddress
from backend.models.db import OrderRow

ADDRESS_FIELDS = ("street", "city", "state", "zipCode")


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED},
    PaymentStatus.COMPLETED: set(),
    PaymentStatus.FAILED: set(),
}

def can_transition(current: str, target: str) -> bool:
    return PaymentStatus(target) in _TRANSITIONS[PaymentStatus(current)]

def ensure_pending(order: OrderRow) -> OrderRow:
    """Lève AlreadyProcessed si la commande n'attend plus de paiement."""
    if order.payment_status != PaymentStatus.PENDING.value:
        raise AlreadyProcessed()
    return order

def validate_address(address: Any) -> Dict[str, str]:
    """Retourne l'adresse normalisée (4 champs str) ou lève InvalidAddress."""
    if not isinstance(address, Mapping):
        raise InvalidAddress()
    cleaned: Dict[str, str] = {}
    for field in ADDRESS_FIELDS:
        value = address.get(field)
        value = str(value).strip() if value is not None else ""
        if not value:
            raise InvalidAddress(f"Adresse de livraison incomplète: champ '{field}' manquant")
        cleaned[field] = value
    return cleaned

def build_lines(cart_lines: List[Dict[str, Any]], products: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Copie {product, quantity, product.price}: fige le prix d'achat."""
    return [
        {
            "product": str(line["product"]),
            "quantity": int(line["quantity"]),
            "price": float(products[str(line["product"])].price),
        }
        for line in cart_lines
    ]

def total_of(lines: List[Dict[str, Any]]) -> float:
    return round(sum(int(line["quantity"]) * float(line["price"]) for line in lines), 2)

def to_order_dict(order: OrderRow) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user": order.user_id,
        "items": [dict(line) for line in order.items or []],
        "totalAmount": order.total_amount,
        "paymentStatus": order.payment_status,
        "deliveryAddress": dict(order.delivery_address or {}),
        "externalPaymentReference": order.external_payment_reference,
        "createdAt": order.created_at.isoformat() if order.created_at else None,
    }
