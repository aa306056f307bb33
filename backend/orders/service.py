"""Couche service de l'user story Commandes.
Rôles:
- Checkout: convertir le panier en commande 'pending' et vider le panier, en une transaction.
- Historique: lister les commandes de l'utilisateur.
Le stock est seulement vérifié ici; le décrément a lieu à l'exécution du paiement
(backend.payments.fulfillment), avec une nouvelle vérification.
"""
from typing import Any, Dict, List
import logging

from sqlalchemy.orm import Session

from backend.cart import repository as cart_repository
from backend.errors import EmptyCart, InsufficientStock, ProductGone
from backend.infra.database import Database
from backend.inventory import repository as inventory
from backend.orders import models, repository

logger = logging.getLogger(__name__)

def checkout(db: Database, user_id: str, delivery_address: Any) -> Dict[str, Any]:
    """Convertit le panier de user_id en commande 'pending' (tout ou rien).
    Étapes (une seule transaction):
      1) Charger le panier -> EmptyCart si absent ou sans ligne.
      2) Pour chaque ligne: ProductGone si le produit n'existe plus,
         InsufficientStock si quantity > stock (vérifié, non décrémenté).
      3) Valider l'adresse -> InvalidAddress.
      4) Figer les lignes {product, quantity, price} et le total.
      5) Insérer la commande et vider le panier.
    Toute erreur annule la transaction: aucune commande, panier intact.
    """
    def _tx(session: Session) -> Dict[str, Any]:
        cart = cart_repository.get_cart(session, user_id, for_update=True)
        if cart is None or not cart.items:
            raise EmptyCart()

        products = inventory.get_products_map(session, [line["product"] for line in cart.items])
        for line in cart.items:
            product = products.get(str(line["product"]))
            if product is None:
                raise ProductGone(f"Le produit {line['product']} n'existe plus")
            if int(line["quantity"]) > product.stock:
                raise InsufficientStock(f"Stock insuffisant pour le produit {product.name}")

        address = models.validate_address(delivery_address)

        lines = models.build_lines(cart.items, products)
        order = repository.insert_order(
            session,
            user_id=user_id,
            items=lines,
            total_amount=models.total_of(lines),
            delivery_address=address,
        )
        cart_repository.save_lines(cart, [], 0.0)
        return models.to_order_dict(order)

    order = db.with_transaction(_tx)
    logger.info("orders.checkout user_id=%s order_id=%s total=%s", user_id, order["id"], order["totalAmount"])
    return order

def list_history(db: Database, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """Commandes de l'utilisateur, les plus récentes d'abord."""
    return db.with_transaction(
        lambda session: [models.to_order_dict(o) for o in repository.list_user_orders(session, user_id, limit)]
    )
