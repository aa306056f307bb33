"""Couche service du catalogue produits (hors pipeline de commande).
- Listing paginé.
- Insertion en lot réservée aux admins: tout ou rien.
"""
from typing import Any, Dict, List
import logging

from backend.catalog import repository
from backend.errors import ValidationError
from backend.infra.database import Database
from backend.models.db import ProductRow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

def to_product_dict(product: ProductRow) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "price": product.price,
        "stock": product.stock,
        "createdAt": product.created_at.isoformat() if product.created_at else None,
    }

def _validate_product(index: int, raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValidationError(f"Produit à l'index {index}: objet attendu")
    name = str(raw.get("name") or "").strip()
    if not name or raw.get("price") is None:
        raise ValidationError(f"Produit à l'index {index}: champs requis manquants (name ou price)")
    try:
        price = float(raw["price"])
    except (TypeError, ValueError):
        raise ValidationError(f"Produit à l'index {index}: prix invalide")
    if price < 0:
        raise ValidationError(f"Produit à l'index {index}: le prix doit être positif ou nul")
    stock = raw.get("stock", 0)
    if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
        raise ValidationError(f"Produit à l'index {index}: le stock doit être un entier positif ou nul")
    return {
        "name": name,
        "description": raw.get("description"),
        "category": raw.get("category"),
        "price": round(price, 2),
        "stock": stock,
    }

def list_products(db: Database, page: int = 1, limit: int = 10) -> List[Dict[str, Any]]:
    """Page `page` (à partir de 1) de `limit` produits (limit plafonné à 100)."""
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or 10), 1), MAX_PAGE_SIZE)
    return db.with_transaction(
        lambda session: [to_product_dict(p) for p in repository.list_products(session, (page - 1) * limit, limit)]
    )

def insert_products(db: Database, products: Any) -> List[Dict[str, Any]]:
    """
    Insère une liste de produits dans une seule transaction.
    - ValidationError si la liste est vide/mal formée ou si un produit est invalide
      (aucun produit n'est alors inséré).
    """
    if not isinstance(products, list) or not products:
        raise ValidationError("products doit être une liste non vide")
    cleaned = [_validate_product(i, raw) for i, raw in enumerate(products)]

    inserted = db.with_transaction(
        lambda session: [to_product_dict(repository.insert_product(session, data)) for data in cleaned]
    )
    logger.info("catalog.insert_products count=%s", len(inserted))
    return inserted
