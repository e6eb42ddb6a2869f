"""
Logique panier pure (pas d'appel Stripe, pas de DB).
Construit les lignes et la requête de session Stripe, et les payloads du partenaire mobile money.
"""
import json
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from storefront.config import BASE_URL, STORE_CURRENCY
from storefront.errors import InvalidInput
from storefront.orders.models import CartLine, OrderMetadata
from storefront.orders.pricing import to_minor_units, to_decimal

# module storefront.checkout.cart
def _product_for(products_by_id: Dict[str, Dict[str, Any]], line: CartLine) -> Dict[str, Any]:
    product = products_by_id.get(line.product_id)
    if not product:
        raise InvalidInput(f"Unknown product: {line.product_id}")
    return product

def to_line_items(products_by_id: Dict[str, Dict[str, Any]], lines: List[CartLine]) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe (une ligne par article du panier).
    - unit_amount: prix courant en centimes, arrondi demi-supérieur.
    - product_data.metadata.id: id applicatif du produit, seule clé de jointure au retour du webhook.
    """
    line_items: List[Dict[str, Any]] = []
    for line in lines:
        product = _product_for(products_by_id, line)
        product_data: Dict[str, Any] = {
            "name": product.get("name") or "Unknown Product",
            "metadata": {"id": line.product_id},
        }
        if product.get("description"):
            product_data["description"] = product["description"]
        if product.get("image_url"):
            product_data["images"] = [product["image_url"]]
        line_items.append({
            "quantity": line.quantity,
            "price_data": {
                "currency": STORE_CURRENCY,
                "unit_amount": to_minor_units(product.get("price")),
                "product_data": product_data,
            },
        })
    return line_items

def make_session_metadata(metadata: OrderMetadata) -> Dict[str, str]:
    """
    Métadonnées opaques de la session (relues par le webhook).
    - Clés identiques aux alias de OrderMetadata; l'adresse est sérialisée en JSON.
    """
    address = metadata.address.model_dump() if metadata.address else None
    return {
        "orderNumber": metadata.order_number,
        "customerName": metadata.customer_name,
        "customerEmail": metadata.customer_email,
        "clerkUserId": metadata.user_id or "",
        "address": json.dumps(address),
    }

def build_session_params(
    products_by_id: Dict[str, Dict[str, Any]],
    lines: List[CartLine],
    metadata: OrderMetadata,
    customer_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paramètres de stripe.checkout.Session.create.
    - Client Stripe existant attaché si trouvé, sinon customer_email (checkout invité).
    """
    order_number = quote(metadata.order_number)
    params: Dict[str, Any] = {
        "metadata": make_session_metadata(metadata),
        "mode": "payment",
        "allow_promotion_codes": True,
        "payment_method_types": ["card"],
        "invoice_creation": {"enabled": True},
        "success_url": f"{BASE_URL}/success?session_id={{CHECKOUT_SESSION_ID}}&orderNumber={order_number}",
        "cancel_url": f"{BASE_URL}/cart",
        "line_items": to_line_items(products_by_id, lines),
    }
    if customer_id:
        params["customer"] = customer_id
    else:
        params["customer_email"] = metadata.customer_email
    return params

def to_partner_items(products_by_id: Dict[str, Dict[str, Any]], lines: List[CartLine]) -> List[Dict[str, Any]]:
    """Articles envoyés au partenaire mobile money (prix courant, unités majeures)."""
    items = []
    for line in lines:
        product = _product_for(products_by_id, line)
        items.append({
            "productId": line.product_id,
            "name": product.get("name") or "Unknown Product",
            "price": float(to_decimal(product.get("price"))),
            "quantity": line.quantity,
        })
    return items

def cod_success_url(order_number: str) -> str:
    return f"{BASE_URL}/cod-success?orderNumber={quote(order_number)}"
