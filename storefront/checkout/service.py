"""
Cas d'usage 'checkout': orchestre produits, Stripe, mobile money et la procédure de commit.
Un handler par moyen de paiement, chacun retournant un CheckoutOutcome:
- carte: session Stripe, commande différée au webhook (aucune écriture ici).
- mobile money: URL partenaire puis commit synchrone (status 'pending').
- paiement à la livraison: commit synchrone puis URL de confirmation locale.
"""
from typing import Any, Callable, Dict, List, Tuple
import logging

from storefront.errors import CheckoutFailed, InvalidInput, InvalidPaymentMethod, UpstreamProcessorError
from storefront.orders import service as orders_service
from storefront.orders.models import CartLine, OrderMetadata, PaymentMethod, PaymentRecord, parse_model
from storefront.products import repository as products_repository
from . import bkash_client
from . import cart
from . import stripe_client
from .models import CheckoutOutcome

logger = logging.getLogger(__name__)

Handler = Callable[[List[CartLine], OrderMetadata, Dict[str, Dict[str, Any]]], CheckoutOutcome]

def _card_checkout(lines: List[CartLine], metadata: OrderMetadata, products_by_id: Dict[str, Dict[str, Any]]) -> CheckoutOutcome:
    customer_id = stripe_client.find_customer_id(metadata.customer_email)
    params = cart.build_session_params(products_by_id, lines, metadata, customer_id)
    session = stripe_client.create_session(params)
    url = session.get("url")
    if not url:
        raise UpstreamProcessorError("Stripe session without url")
    logger.info("checkout.card session_id=%s order_number=%s", session.get("id"), metadata.order_number)
    return CheckoutOutcome.redirect(url, metadata.order_number)

def _mobile_money_checkout(lines: List[CartLine], metadata: OrderMetadata, products_by_id: Dict[str, Dict[str, Any]]) -> CheckoutOutcome:
    payment = bkash_client.create_payment(
        cart.to_partner_items(products_by_id, lines),
        metadata.model_dump(mode="json", by_alias=True),
    )
    record = PaymentRecord.mobile_money(payment.get("paymentID"))
    order = orders_service.commit_order(metadata, lines, record)
    return CheckoutOutcome.committed(payment["url"], metadata.order_number, order)

def _cod_checkout(lines: List[CartLine], metadata: OrderMetadata, products_by_id: Dict[str, Dict[str, Any]]) -> CheckoutOutcome:
    if metadata.address is None:
        raise InvalidInput("Incomplete address information")
    order = orders_service.commit_order(metadata, lines, PaymentRecord.cash_on_delivery())
    return CheckoutOutcome.committed(cart.cod_success_url(metadata.order_number), metadata.order_number, order)

CHECKOUT_HANDLERS: Dict[PaymentMethod, Handler] = {
    PaymentMethod.CARD: _card_checkout,
    PaymentMethod.MOBILE_MONEY: _mobile_money_checkout,
    PaymentMethod.COD: _cod_checkout,
}

def begin_checkout(lines: List[CartLine], metadata: OrderMetadata) -> CheckoutOutcome:
    """
    Démarre le checkout du panier selon metadata.payment_method.
    - InvalidInput: panier vide ou produit introuvable (aucun effet de bord).
    - InvalidPaymentMethod: tag inconnu.
    - CheckoutFailed: toute autre erreur en aval (cause chaînée); l'appelant ne suppose aucun état partiel.
    """
    if not lines:
        raise InvalidInput("Cart is empty")
    method = PaymentMethod.parse(metadata.payment_method)
    handler = CHECKOUT_HANDLERS.get(method)
    if handler is None:
        raise InvalidPaymentMethod(f"Invalid payment method: {method}")

    lines = orders_service.aggregate_lines(lines)
    try:
        products_by_id = products_repository.get_products_map([line.product_id for line in lines])
        missing = [line.product_id for line in lines if line.product_id not in products_by_id]
        if missing:
            raise InvalidInput(f"Unknown product: {', '.join(missing)}")
        return handler(lines, metadata, products_by_id)
    except InvalidInput:
        raise
    except Exception as e:
        raise CheckoutFailed(f"{method.value} checkout failed: {e}") from e

def parse_checkout_request(body: Any) -> Tuple[List[CartLine], OrderMetadata]:
    """
    Body attendu:
    { "items": [{"productId": "...", "quantity": 2}, ...],
      "metadata": {"orderNumber"?, "customerName", "customerEmail", "clerkUserId"?, "address"?, "paymentMethod"?} }
    """
    body = body if isinstance(body, dict) else {}
    items = body.get("items")
    if not isinstance(items, list) or not items:
        raise InvalidInput("Cart is empty")
    lines = [parse_model(CartLine, item, "Invalid cart item") for item in items]
    metadata = parse_model(OrderMetadata, body.get("metadata"), "Invalid checkout metadata")
    return lines, metadata
