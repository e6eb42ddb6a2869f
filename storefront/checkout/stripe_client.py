"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Toutes les fonctions retournent des dicts Python simples (objets Stripe convertis).
"""
from typing import Any, Dict, List, Optional

import stripe

from storefront.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET, STRIPE_WEBHOOK_TOLERANCE

# module storefront.checkout.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def as_dict(obj: Any) -> Dict[str, Any]:
    """StripeObject (ou dict) -> dict récursif."""
    if obj is None:
        return {}
    to_dict = getattr(obj, "to_dict_recursive", None) or getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(obj)

def find_customer_id(email: str) -> Optional[str]:
    """Identifiant du client Stripe existant pour cet email (premier trouvé), sinon None."""
    require_stripe()
    customers = as_dict(stripe.Customer.list(email=email, limit=1))
    data = customers.get("data") or []
    return data[0].get("id") if data else None

def create_session(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout.
    Retour: dict session (ex: {"id": "cs_test_...", "url": "https://..."})
    """
    require_stripe()
    return as_dict(stripe.checkout.Session.create(**params))

def list_line_items(session_id: str) -> List[Dict[str, Any]]:
    """
    Lignes d'une session avec le produit Stripe déplié (price.product),
    pour retrouver l'id applicatif stocké dans product.metadata.id.
    """
    require_stripe()
    items = stripe.checkout.Session.list_line_items(session_id, expand=["data.price.product"], limit=100)
    return [as_dict(item) for item in items.auto_paging_iter()]

def retrieve_invoice(invoice_id: str) -> Dict[str, Any]:
    require_stripe()
    return as_dict(stripe.Invoice.retrieve(invoice_id))

def verify_signature(payload: bytes, sig_header: Optional[str]) -> None:
    """
    Vérifie l'en-tête Stripe-Signature sur le body brut (HMAC SHA-256, tolérance en secondes).
    Lève stripe.SignatureVerificationError si la signature est absente ou invalide.
    """
    secret = STRIPE_WEBHOOK_SECRET
    if not secret or not sig_header:
        raise stripe.SignatureVerificationError("Missing Stripe signature or webhook secret", sig_header, payload)
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise stripe.SignatureVerificationError("Webhook body is not valid UTF-8", sig_header, payload) from e
    stripe.WebhookSignature.verify_header(
        body,
        sig_header,
        secret,
        STRIPE_WEBHOOK_TOLERANCE,
    )
