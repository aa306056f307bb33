from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backend.models.db import OrderRow
from backend.orders.models import PaymentStatus

logger = logging.getLogger(__name__)

def insert_order(
    session: Session,
    *,
    user_id: str,
    items: List[Dict[str, Any]],
    total_amount: float,
    delivery_address: Dict[str, str],
) -> OrderRow:
    """Crée la commande 'pending' sans référence de paiement (flush pour obtenir id/created_at)."""
    order = OrderRow(
        user_id=str(user_id),
        items=items,
        total_amount=total_amount,
        payment_status=PaymentStatus.PENDING.value,
        delivery_address=delivery_address,
        external_payment_reference=None,
    )
    session.add(order)
    session.flush()
    return order

def get_user_order(session: Session, order_id: str, user_id: str) -> Optional[OrderRow]:
    """Commande limitée à (order_id, user_id): None si absente ou appartenant à un autre utilisateur."""
    stmt = select(OrderRow).where(OrderRow.id == str(order_id), OrderRow.user_id == str(user_id))
    return session.execute(stmt).scalar_one_or_none()

def get_by_reference(session: Session, reference: str, for_update: bool = False) -> Optional[OrderRow]:
    stmt = select(OrderRow).where(OrderRow.external_payment_reference == reference)
    if for_update:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()

def set_payment_reference(session: Session, order_id: str, reference: str) -> bool:
    """
    Écrit la référence externe une seule fois (tant qu'elle est vide et la commande 'pending').
    Retourne False si la commande a déjà une référence ou n'est plus 'pending'.
    """
    res = session.execute(
        update(OrderRow)
        .where(
            OrderRow.id == str(order_id),
            OrderRow.external_payment_reference.is_(None),
            OrderRow.payment_status == PaymentStatus.PENDING.value,
        )
        .values(external_payment_reference=reference)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1

def claim_completion(session: Session, order_id: str) -> bool:
    """
    Passe pending -> completed par UPDATE conditionnel.
    False si une autre transaction l'a déjà fait (livraison concurrente du même événement).
    """
    res = session.execute(
        update(OrderRow)
        .where(OrderRow.id == str(order_id), OrderRow.payment_status == PaymentStatus.PENDING.value)
        .values(payment_status=PaymentStatus.COMPLETED.value)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1

def list_user_orders(session: Session, user_id: str, limit: int = 50) -> List[OrderRow]:
    stmt = (
        select(OrderRow)
        .where(OrderRow.user_id == str(user_id))
        .order_by(OrderRow.created_at.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())
