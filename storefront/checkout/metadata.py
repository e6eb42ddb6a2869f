"""
Désérialisation des métadonnées de session Stripe (client, adresse, numéro de commande).
"""
import json
from typing import Any, Dict, Optional

from storefront.errors import InvalidInput
from storefront.orders.models import OrderMetadata, PaymentMethod, parse_model

# module storefront.checkout.metadata
def parse_address(raw: Any) -> Optional[Dict[str, Any]]:
    """
    L'adresse est stockée en JSON dans les métadonnées de session.
    - Absente, vide ou "null": None.
    - JSON invalide ou non-objet: InvalidInput (falsification ou bug processeur, jamais ignoré).
    """
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except ValueError as e:
        raise InvalidInput("Malformed address in session metadata") from e
    if parsed is None:
        return None
    if not isinstance(parsed, dict):
        raise InvalidInput("Malformed address in session metadata")
    return parsed

def extract_metadata_from_session(session: Dict[str, Any]) -> OrderMetadata:
    """
    Reconstruit OrderMetadata depuis session["metadata"] (écrit par cart.make_session_metadata).
    - customerEmail absent: repli sur customer_details.email / customer_email de la session.
    """
    meta = dict((session or {}).get("metadata") or {})
    email = (
        meta.get("customerEmail")
        or ((session or {}).get("customer_details") or {}).get("email")
        or (session or {}).get("customer_email")
    )
    return parse_model(
        OrderMetadata,
        {
            "orderNumber": meta.get("orderNumber"),
            "customerName": meta.get("customerName"),
            "customerEmail": email,
            "clerkUserId": meta.get("clerkUserId") or None,
            "address": parse_address(meta.get("address")),
            "paymentMethod": PaymentMethod.CARD,
        },
        "Invalid session metadata",
    )
