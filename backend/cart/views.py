# module backend.cart.views

"""Endpoints du panier.
- POST /api/v1/orders/cart: ajoute un produit (fusion si déjà présent), contrôle du stock.
- GET  /api/v1/orders/cart: panier courant de l'utilisateur.
Les erreurs métier (backend.errors) sont traduites par app_setup.exceptions.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.cart import service as cart_service
from backend.infra.database import Database, get_database
from backend.utils.responses import ok
from backend.utils.security import require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Cart API"])


class AddToCartRequest(BaseModel):
    productId: str
    quantity: int


@router.post("/cart")
def api_add_to_cart(
    payload: AddToCartRequest,
    user: Dict[str, Any] = Depends(require_user),
    db: Database = Depends(get_database),
):
    """Ajoute {productId, quantity} au panier et renvoie le panier recalculé."""
    cart = cart_service.add_item(db, user["id"], payload.productId, payload.quantity)
    return ok("Produit ajouté au panier", cart)


@router.get("/cart")
def api_get_cart(user: Dict[str, Any] = Depends(require_user), db: Database = Depends(get_database)):
    return ok("Panier récupéré", cart_service.get_cart(db, user["id"]))
