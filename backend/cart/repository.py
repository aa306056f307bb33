"""
Accès aux données pour la feature 'cart' (table carts).
Les fonctions reçoivent la session de la transaction appelante.
"""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.models.db import CartRow, utcnow

logger = logging.getLogger(__name__)

# module backend.cart.repository
def get_cart(session: Session, user_id: str, for_update: bool = False) -> Optional[CartRow]:
    stmt = select(CartRow).where(CartRow.user_id == str(user_id))
    if for_update:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()

def create_cart(session: Session, user_id: str) -> CartRow:
    """Création paresseuse au premier ajout (items vides, total 0); flush pour obtenir l'id."""
    cart = CartRow(user_id=str(user_id), items=[], total_price=0.0)
    session.add(cart)
    session.flush()
    return cart

def save_lines(cart: CartRow, items: List[Dict[str, Any]], total_price: float) -> CartRow:
    # Réaffecter la liste (et non la muter) pour que SQLAlchemy détecte le changement JSON
    cart.items = [dict(line) for line in items]
    cart.total_price = total_price
    cart.updated_at = utcnow()
    return cart

def clear_cart(session: Session, user_id: str) -> bool:
    """
    Vide le panier de l'utilisateur. No-op si absent ou déjà vide.
    Retourne True si une écriture a eu lieu.
    """
    cart = get_cart(session, user_id, for_update=True)
    if cart is None or (not cart.items and not cart.total_price):
        return False
    save_lines(cart, [], 0.0)
    logger.info("cart.cleared user_id=%s", user_id)
    return True
