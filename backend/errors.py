# module backend.errors
"""Erreurs métier du pipeline panier → commande → paiement → exécution.

Chaque classe porte son code HTTP: les services lèvent, la couche
app_setup.exceptions traduit en réponse {success: false, message}.
Une erreur levée dans Database.with_transaction annule toute la transaction.
"""
from typing import Optional


class DomainError(Exception):
    status_code = 500
    default_message = "Une erreur est survenue"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Entrée absente ou mal formée."""
    status_code = 400
    default_message = "Requête invalide"


class InvalidAddress(ValidationError):
    default_message = "Adresse de livraison incomplète (street, city, state, zipCode requis)"


class InvalidAmount(ValidationError):
    default_message = "Montant de commande invalide"


class NotFound(DomainError):
    status_code = 404
    default_message = "Ressource introuvable"


class ProductGone(NotFound):
    """Un produit du panier n'existe plus au moment du checkout."""
    default_message = "Un produit du panier n'existe plus"


class ProductMissing(NotFound):
    """Un produit d'une commande n'existe plus au moment de l'exécution."""
    default_message = "Produit de la commande introuvable"


class OrderNotFound(NotFound):
    """Aucune commande ne correspond à la référence de paiement reçue."""
    default_message = "Commande introuvable pour cette référence de paiement"


class InsufficientStock(DomainError):
    status_code = 400
    default_message = "Stock insuffisant"


class EmptyCart(DomainError):
    status_code = 400
    default_message = "Panier vide"


class AlreadyProcessed(DomainError):
    status_code = 400
    default_message = "Cette commande a déjà été payée ou a échoué"


class PaymentGatewayError(DomainError):
    """Échec du prestataire de paiement; l'appelant peut réessayer."""
    status_code = 500
    default_message = "Le service de paiement est indisponible"


class PersistenceError(DomainError):
    """Transaction annulée par la base (conflit, timeout, contrainte)."""
    status_code = 500
    default_message = "Erreur de persistance, transaction annulée"
