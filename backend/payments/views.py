import logging
from typing import Any, Dict

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from backend.infra.database import Database, get_database
from backend.payments import fulfillment, stripe_client
from backend.payments import service as payments_service
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.responses import fail, ok
from backend.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


class PaymentIntentRequest(BaseModel):
    orderId: str


# module backend.payments.views
@router.post("/create-payment-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_payment_intent(
    payload: PaymentIntentRequest,
    user: Dict[str, Any] = Depends(require_user),
    db: Database = Depends(get_database),
    payment_client: stripe_client.StripePaymentClient = Depends(stripe_client.get_payment_client),
):
    """
    Ouvre le PaymentIntent Stripe d'une commande 'pending' de l'utilisateur.
    - Entrée JSON: {"orderId": "<id>"}
    - Sortie: data = {externalReference, clientSecret} (clientSecret pour Stripe.js côté client)
    - Erreurs: 404 commande absente, 400 déjà payée / montant invalide, 500 Stripe indisponible
    """
    intent = payments_service.create_intent(db, payment_client, payload.orderId, user["id"])
    return ok("Paiement créé", intent)


@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, db: Database = Depends(get_database)):
    """
    Webhook Stripe: consomme payment_intent.succeeded pour exécuter la commande.
    - Signature: stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET), 400 sinon
    - Exécution: fulfillment.handle_event (idempotent: une relivraison ne décrémente pas deux fois)
    - Commande introuvable: 404, Stripe relivrera l'événement
    """
    try:
        event = await stripe_client.parse_event(request)
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("payments.webhook invalid signature or payload", exc_info=True)
        return JSONResponse(status_code=400, content=fail("Signature Stripe invalide"))

    result = await run_in_threadpool(fulfillment.handle_event, db, event)
    if result["status"] == "ignored":
        return {"received": True, "success": True, "message": f"Événement {result['type']} ignoré"}
    if result["status"] == "duplicate":
        message = f"Commande {result['orderId']} déjà traitée"
    else:
        message = f"Commande {result['orderId']} payée, stock mis à jour"
    return {"received": True, "success": True, "message": message, "data": result}
