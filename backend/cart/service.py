"""Couche service du panier (Cart Aggregate).
Rôles:
- Ajouter un produit au panier en respectant le stock courant (fusion des lignes).
- Recalculer le total à partir des prix actuels des produits.
- Vider le panier (utilisé par l'exécution du paiement et le checkout).
Les helpers de calcul (merge_line, compute_total) sont purs: ni DB ni HTTP.
"""
from typing import Any, Dict, List, Mapping
import logging

from sqlalchemy.orm import Session

from backend.cart import repository
from backend.errors import InsufficientStock, NotFound, ValidationError
from backend.infra.database import Database
from backend.inventory import repository as inventory
from backend.models.db import CartRow

logger = logging.getLogger(__name__)

def quantity_of(lines: List[Dict[str, Any]], product_id: str) -> int:
    return sum(int(line.get("quantity") or 0) for line in lines if str(line.get("product")) == product_id)

def merge_line(lines: List[Dict[str, Any]], product_id: str, quantity: int) -> List[Dict[str, Any]]:
    """Ajoute quantity à la ligne existante du produit, sinon ajoute une nouvelle ligne."""
    merged: List[Dict[str, Any]] = []
    found = False
    for line in lines:
        if str(line.get("product")) == product_id:
            merged.append({"product": product_id, "quantity": int(line.get("quantity") or 0) + quantity})
            found = True
        else:
            merged.append(dict(line))
    if not found:
        merged.append({"product": product_id, "quantity": quantity})
    return merged

def compute_total(lines: List[Dict[str, Any]], products: Mapping[str, Any]) -> float:
    """
    Σ(quantity × prix courant). Lève ValidationError si une ligne référence
    un produit qui n'existe plus (produit périmé).
    """
    total = 0.0
    for line in lines:
        product = products.get(str(line.get("product")))
        if product is None:
            raise ValidationError(f"Produit périmé dans le panier: {line.get('product')}")
        total += int(line["quantity"]) * float(product.price)
    return round(total, 2)

def to_cart_dict(cart: CartRow | None, user_id: str) -> Dict[str, Any]:
    if cart is None:
        return {"id": None, "user": user_id, "items": [], "totalPrice": 0.0}
    return {
        "id": cart.id,
        "user": cart.user_id,
        "items": [{"product": line["product"], "quantity": line["quantity"]} for line in cart.items or []],
        "totalPrice": cart.total_price,
    }

def _require_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("La quantité doit être un entier positif")
    return quantity

# module backend.cart.service
def add_item(db: Database, user_id: str, product_id: str, quantity: int) -> Dict[str, Any]:
    """
    Ajoute (ou fusionne) une ligne au panier de user_id, dans une transaction.
    - ValidationError: productId manquant, quantité non entière ou <= 0, produit périmé.
    - NotFound: produit inconnu.
    - InsufficientStock: quantité déjà au panier + quantity > stock.
    En cas d'échec, le panier n'est pas modifié.
    """
    product_id = str(product_id or "").strip()
    if not product_id:
        raise ValidationError("productId et quantity sont requis")
    quantity = _require_quantity(quantity)

    def _tx(session: Session) -> Dict[str, Any]:
        product = inventory.get_product(session, product_id)
        if product is None:
            raise NotFound("Produit introuvable")

        cart = repository.get_cart(session, user_id, for_update=True)
        lines = list(cart.items or []) if cart else []
        if quantity_of(lines, product_id) + quantity > product.stock:
            raise InsufficientStock(f"Stock insuffisant pour le produit {product.name}")

        lines = merge_line(lines, product_id, quantity)
        products = inventory.get_products_map(session, [line["product"] for line in lines])
        total = compute_total(lines, products)

        if cart is None:
            cart = repository.create_cart(session, user_id)
        repository.save_lines(cart, lines, total)
        return to_cart_dict(cart, user_id)

    cart = db.with_transaction(_tx)
    logger.info("cart.add_item user_id=%s product_id=%s quantity=%s total=%s", user_id, product_id, quantity, cart["totalPrice"])
    return cart

def get_cart(db: Database, user_id: str) -> Dict[str, Any]:
    """Panier courant de l'utilisateur (vue vide si jamais créé)."""
    return db.with_transaction(lambda session: to_cart_dict(repository.get_cart(session, user_id), user_id))

def clear(session: Session, user_id: str) -> bool:
    """Vide le panier dans la transaction appelante (idempotent)."""
    return repository.clear_cart(session, user_id)
