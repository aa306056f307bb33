"""
Ledger d'inventaire: lecture des produits et décrément atomique du stock.
Toutes les fonctions travaillent dans la session (transaction) de l'appelant.
"""
from typing import Dict, Iterable, Optional
import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backend.errors import InsufficientStock, ProductMissing
from backend.models.db import ProductRow

logger = logging.getLogger(__name__)

# module backend.inventory.repository
def get_product(session: Session, product_id: str, for_update: bool = False) -> Optional[ProductRow]:
    """
    Produit par id (None si absent).
    - for_update: verrou de ligne (SELECT ... FOR UPDATE, ignoré par SQLite).
    """
    if not product_id:
        return None
    stmt = select(ProductRow).where(ProductRow.id == str(product_id))
    if for_update:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()

def get_products_map(session: Session, ids: Iterable[str]) -> Dict[str, ProductRow]:
    """Retourne {id: produit} pour les ids demandés; les ids inconnus sont absents du dict."""
    wanted = {str(i) for i in ids if i}
    if not wanted:
        return {}
    rows = session.execute(select(ProductRow).where(ProductRow.id.in_(wanted))).scalars().all()
    return {row.id: row for row in rows}

def check_and_decrement(session: Session, product_id: str, quantity: int) -> int:
    """
    Vérifie puis décrémente le stock d'un produit, dans la transaction courante.
    - Relit le stock (verrouillé) au lieu de réutiliser une valeur lue plus tôt.
    - Le UPDATE est conditionné à stock >= quantity: jamais de stock négatif.
    Retour: le stock restant.
    Erreurs: ProductMissing, InsufficientStock (la transaction appelante est alors annulée).
    """
    product = get_product(session, product_id, for_update=True)
    if product is None:
        raise ProductMissing(f"Produit {product_id} introuvable")
    if product.stock < quantity:
        raise InsufficientStock(f"Stock insuffisant pour le produit {product.name}")

    res = session.execute(
        update(ProductRow)
        .where(ProductRow.id == product.id, ProductRow.stock >= quantity)
        .values(stock=ProductRow.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        # Consommé entre la lecture et l'écriture par une autre transaction
        raise InsufficientStock(f"Stock insuffisant pour le produit {product.name}")
    session.expire(product, ["stock"])
    logger.info("inventory.decrement product_id=%s quantity=%s remaining=%s", product.id, quantity, product.stock)
    return product.stock
