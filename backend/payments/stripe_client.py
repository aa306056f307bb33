"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- StripePaymentClient: création/lecture de PaymentIntent (montants en unités mineures).
- verify_event/parse_event: validation de la signature des webhooks.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe
from fastapi import Request

from backend import config
from backend.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

# Devises sans décimales côté Stripe (montant transmis tel quel)
ZERO_DECIMAL_CURRENCIES = {
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
}

# module backend.payments.stripe_client
def require_stripe() -> stripe:
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if config.STRIPE_SECRET_KEY:
        stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def to_minor_units(amount: float, currency: str) -> int:
    """
    Convertit un montant décimal en unités mineures Stripe.
    - 2 décimales (usd, eur...): ×100 arrondi au plus proche (19.99 -> 1999)
    - devises sans décimales (jpy...): arrondi à l'unité
    """
    value = Decimal(str(amount))
    if (currency or "").lower() not in ZERO_DECIMAL_CURRENCIES:
        value = value * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def _intent_dict(intent: Any) -> Dict[str, Any]:
    return {
        "id": intent["id"],
        "client_secret": intent["client_secret"],
        "status": intent.get("status"),
    }


class StripePaymentClient:
    """Client de paiement injecté dans les services (Depends(get_payment_client))."""

    def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Crée un PaymentIntent Stripe.
        - amount: unités mineures (centimes)
        - metadata: {"orderId": "...", "userId": "..."} pour la corrélation
        - idempotency_key: une même clé renvoie le même PaymentIntent (retry sûr)
        Retour: {"id": "pi_...", "client_secret": "...", "status": "..."}
        """
        require_stripe()
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.exception("stripe.PaymentIntent.create failed metadata=%s", metadata)
            raise PaymentGatewayError(f"Création du paiement impossible: {getattr(e, 'user_message', None) or 'erreur Stripe'}") from e
        return _intent_dict(intent)

    def retrieve_payment_intent(self, intent_id: str) -> Dict[str, Any]:
        require_stripe()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as e:
            logger.exception("stripe.PaymentIntent.retrieve failed intent_id=%s", intent_id)
            raise PaymentGatewayError("Lecture du paiement impossible") from e
        return _intent_dict(intent)


_payment_client: Optional[StripePaymentClient] = None

def get_payment_client() -> StripePaymentClient:
    global _payment_client
    if _payment_client is None:
        _payment_client = StripePaymentClient()
    return _payment_client

def verify_event(payload: bytes, sig_header: Optional[str], secret: str, tolerance: int = 300) -> Dict[str, Any]:
    """
    Valide la signature Stripe via Webhook.construct_event (HMAC du body brut + horodatage).
    Retour: {"id", "type", "data": {"object": {...}}} en dict simple pour le handler.
    Erreurs: ValueError (secret/en-tête/payload invalide), stripe.SignatureVerificationError.
    """
    if not secret:
        raise ValueError("STRIPE_WEBHOOK_SECRET manquant")
    if not sig_header:
        raise ValueError("En-tête Stripe-Signature manquant")
    event = stripe.Webhook.construct_event(payload, sig_header, secret, tolerance).to_dict()
    data = event.get("data") or {}
    return {
        "id": event.get("id"),
        "type": event.get("type"),
        "data": {"object": dict(data.get("object") or {})},
    }

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature avec STRIPE_WEBHOOK_SECRET
    Retour: l’événement (dict) si la signature est valide.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    return verify_event(payload, sig_header, config.STRIPE_WEBHOOK_SECRET, config.STRIPE_WEBHOOK_TOLERANCE)
