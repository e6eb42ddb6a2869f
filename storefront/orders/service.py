"""Couche service de la feature Commandes.
Rôles:
- commit_order: procédure unique d'enregistrement d'une commande, partagée par
  le checkout (COD, mobile money) et le webhook Stripe (carte).
  Phase 1: calcul des totaux + écriture du document commande (un seul create).
  Phase 2: décrémentation du stock par article (best-effort, jamais avant la phase 1).
- create_cod_order: validation de la requête COD puis commit synchrone.
- list_customer_orders: lecture des commandes d'un client (affichage).
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4
import logging

from storefront.config import STORE_CURRENCY
from storefront.errors import InvalidInput
from storefront.products import repository as products_repository
from . import pricing
from . import repository
from . import stock
from .models import (
    Address,
    CartLine,
    OrderMetadata,
    PaymentMethod,
    PaymentRecord,
    parse_model,
)

logger = logging.getLogger(__name__)

DELIVERY_DAYS = 3
ADDRESS_FIELDS = ("name", "address", "city", "state", "zip")

def aggregate_lines(lines: List[CartLine]) -> List[CartLine]:
    """Regroupe les lignes d'un même produit (quantités additionnées, ordre conservé)."""
    merged: Dict[str, CartLine] = {}
    for line in lines:
        existing = merged.get(line.product_id)
        if existing:
            merged[line.product_id] = existing.model_copy(update={"quantity": existing.quantity + line.quantity})
        else:
            merged[line.product_id] = line
    return list(merged.values())

def address_document(address: Any) -> Optional[Dict[str, Any]]:
    """Projection de l'adresse sur les champs du document (None si absente)."""
    if address is None:
        return None
    if isinstance(address, Address):
        return address.model_dump()
    if isinstance(address, dict):
        return {field: address.get(field) for field in ADDRESS_FIELDS}
    return None

def build_order_document(
    metadata: OrderMetadata,
    lines: List[CartLine],
    payment: PaymentRecord,
    totals: pricing.Totals,
    currency: str,
    unit_prices: Dict[str, Any],
) -> Dict[str, Any]:
    products = []
    for line in lines:
        item: Dict[str, Any] = {
            "_key": uuid4().hex,
            "product_id": line.product_id,
            "quantity": line.quantity,
        }
        unit_price = unit_prices.get(line.product_id)
        if unit_price is not None:
            item["unit_price"] = pricing.money(pricing.to_decimal(unit_price))
        products.append(item)

    return {
        "order_number": metadata.order_number,
        "customer_name": metadata.customer_name,
        "email": metadata.customer_email,
        "user_id": metadata.user_id or "",
        "address": address_document(metadata.address),
        "payment_method": payment.method.value,
        "status": payment.status.value,
        "currency": currency,
        "total_price": pricing.money(totals.total_price),
        "amount_discount": pricing.money(totals.amount_discount),
        "products": products,
        "order_date": datetime.now(timezone.utc).isoformat(),
        "stripe_checkout_session_id": payment.checkout_session_id,
        "stripe_payment_intent_id": payment.payment_intent_id,
        "stripe_customer_id": payment.customer_id,
        "invoice": payment.invoice,
    }

def commit_order(metadata: OrderMetadata, lines: List[CartLine], payment: PaymentRecord) -> Dict[str, Any]:
    """
    Enregistre la commande puis décrémente le stock.
    - payment.totals None: recalcul depuis les prix/remises COURANTS des produits.
    - payment.totals fourni: totaux du processeur (montant déjà encaissé).
    - OrderPersistError / DuplicateOrder: rien n'est écrit, stock intact.
    - Échecs de stock: journalisés par article, la commande reste enregistrée.
    """
    if not lines:
        raise InvalidInput("No products to order")

    if payment.totals is None:
        products_by_id = products_repository.get_products_map([line.product_id for line in lines])
        totals = pricing.compute_totals(lines, products_by_id)
        currency = STORE_CURRENCY
        unit_prices = {pid: p.get("price") for pid, p in products_by_id.items()}
    else:
        totals = pricing.Totals(payment.totals.total_price, payment.totals.amount_discount)
        currency = payment.totals.currency or STORE_CURRENCY
        unit_prices = {line.product_id: line.unit_price for line in lines}

    order_doc = build_order_document(metadata, lines, payment, totals, currency, unit_prices)
    order = repository.insert_order(order_doc)
    logger.info(
        "orders.commit order_number=%s method=%s status=%s total=%s items=%s",
        metadata.order_number, payment.method.value, payment.status.value, order_doc["total_price"], len(lines),
    )

    failed = stock.update_stock_levels(lines)
    if failed:
        logger.warning("orders.commit order_number=%s stock not updated for %s", metadata.order_number, failed)
    return order

def parse_cod_request(body: Any) -> Tuple[OrderMetadata, List[CartLine]]:
    """
    Valide une requête COD:
    { orderNumber?, customerName, customerEmail, clerkUserId?, address{name,address,city,state,zip},
      products: [{productId, quantity}] }
    - InvalidInput si un champ requis manque ou si l'adresse est incomplète.
    """
    body = body if isinstance(body, dict) else {}
    products = body.get("products")
    if (
        not body.get("customerName")
        or not body.get("customerEmail")
        or not body.get("address")
        or not isinstance(products, list)
        or len(products) == 0
    ):
        raise InvalidInput("Missing required fields in request body")

    address = body.get("address")
    if not isinstance(address, dict) or not all(str(address.get(f) or "").strip() for f in ADDRESS_FIELDS):
        raise InvalidInput("Incomplete address information")

    lines = [parse_model(CartLine, item, "Invalid product line") for item in products]
    metadata = parse_model(
        OrderMetadata,
        {
            "orderNumber": body.get("orderNumber"),
            "customerName": body.get("customerName"),
            "customerEmail": body.get("customerEmail"),
            "clerkUserId": body.get("clerkUserId"),
            "address": address,
            "paymentMethod": PaymentMethod.COD,
        },
        "Invalid customer information",
    )
    return metadata, aggregate_lines(lines)

def create_cod_order(body: Any) -> Dict[str, Any]:
    """Commande paiement à la livraison: validation, puis commit synchrone (status 'pending')."""
    metadata, lines = parse_cod_request(body)
    return commit_order(metadata, lines, PaymentRecord.cash_on_delivery())

def _delivery_date(order_date: Optional[str]) -> str:
    if not order_date:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(str(order_date).replace("Z", "+00:00"))
    except ValueError:
        return "N/A"
    return (parsed + timedelta(days=DELIVERY_DAYS)).date().isoformat()

def list_customer_orders(user_id: str) -> List[Dict[str, Any]]:
    """Commandes d'un client, plus récentes d'abord, avec une date de livraison estimée (J+3)."""
    orders = repository.fetch_user_orders(user_id)
    orders = sorted(orders, key=lambda o: o.get("order_date") or "", reverse=True)
    return [{**o, "delivery_date": _delivery_date(o.get("order_date"))} for o in orders]
