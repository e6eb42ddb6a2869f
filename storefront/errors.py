"""
Taxonomie des erreurs métier de la boutique.

Chaque erreur porte un `status_code` HTTP et un message public (`public_message`)
rendu tel quel par le handler d'exceptions (corps {"error": ...}).
Le détail interne reste dans le message de l'exception et la cause chaînée (logs).
"""
from typing import Optional


class StorefrontError(Exception):
    status_code = 500
    public_message: Optional[str] = None

    def __init__(self, message: str = "", *, public_message: Optional[str] = None):
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message

    @property
    def error(self) -> str:
        return self.public_message or str(self) or self.__class__.__name__


class InvalidInput(StorefrontError):
    """Champs de requête manquants ou mal formés."""
    status_code = 400


class InvalidPaymentMethod(InvalidInput):
    """Tag de moyen de paiement inconnu."""


class InvalidSignature(StorefrontError):
    """Échec d'authenticité du webhook: aucun effet de bord."""
    status_code = 400


class UpstreamProcessorError(StorefrontError):
    """Backend de paiement injoignable ou requête refusée."""
    status_code = 502
    public_message = "Payment processor unavailable"


class CheckoutFailed(StorefrontError):
    status_code = 500
    public_message = "Checkout failed"


class OrderPersistError(StorefrontError):
    """Écriture de la commande impossible: rien n'est committé (stock intact)."""
    status_code = 500
    public_message = "Failed to create order"


class DuplicateOrder(OrderPersistError):
    """Une commande existe déjà pour cette session de paiement (clé de dédup)."""
    status_code = 409
    public_message = "Order already recorded"


class StockUpdateError(StorefrontError):
    """Échec de mise à jour du stock pour un article (journalisé, non bloquant)."""


class OrderReconciliationFailed(StorefrontError):
    """Échec côté webhook: l'émetteur doit relivrer l'événement."""
    status_code = 500
    public_message = "Failed to create order"
