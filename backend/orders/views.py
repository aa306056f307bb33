# module backend.orders.views

"""Endpoints de l’user story Commandes.
- POST /checkout: transforme le panier en commande 'pending' (authentifié, rate-limité).
- GET /history: historique des commandes de l'utilisateur.
Sécurité:
- require_user: claim d'identité {id, role} fourni par Supabase Auth.
- optional_rate_limit: limite la fréquence des checkouts.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.infra.database import Database, get_database
from backend.orders import service as orders_service
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.responses import ok
from backend.utils.security import require_user

router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


class CheckoutRequest(BaseModel):
    # Validé par le service (InvalidAddress) pour garder un 400 métier homogène
    deliveryAddress: Optional[Dict[str, Any]] = None


@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def api_checkout(
    payload: Optional[CheckoutRequest] = None,
    user: Dict[str, Any] = Depends(require_user),
    db: Database = Depends(get_database),
):
    """Crée la commande à partir du panier; le paiement se fait ensuite via /payments/create-payment-intent."""
    address = payload.deliveryAddress if payload else None
    order = orders_service.checkout(db, user["id"], address)
    return ok("Commande créée, procédez au paiement", order)


@router.get("/history")
def api_order_history(user: Dict[str, Any] = Depends(require_user), db: Database = Depends(get_database)):
    orders = orders_service.list_history(db, user["id"])
    if not orders:
        return ok("Aucune commande", [])
    return ok("Historique des commandes récupéré", orders)
