"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le client Stripe, l'ouverture de paiement et l'exécution des commandes payées.
"""

from .stripe_client import StripePaymentClient, get_payment_client, parse_event, to_minor_units, verify_event
from .service import create_intent
from .fulfillment import handle_event, handle_payment_succeeded

__all__ = [
    # stripe
    "StripePaymentClient",
    "get_payment_client",
    "parse_event",
    "verify_event",
    "to_minor_units",
    # services
    "create_intent",
    "handle_event",
    "handle_payment_succeeded",
]
