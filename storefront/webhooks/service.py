"""Réconciliation des webhooks Stripe (chemin carte).
Rôles:
- Vérifier la signature Stripe sur le body brut: seule barrière d'authenticité, aucun effet de bord sinon.
- Ignorer (acquitter) tout événement autre que checkout.session.completed.
- Pour une session complétée: dédupliquer sur l'id de session, relire lignes + facture chez Stripe,
  reconstruire les métadonnées client, puis lancer la procédure de commit avec les totaux Stripe.
Livraison au-moins-une-fois: un même événement peut arriver plusieurs fois, la commande
n'est créée (et le stock décrémenté) qu'une seule fois par session.
"""
from typing import Any, Dict, List, Optional
import json
import logging

import stripe

from storefront.checkout import stripe_client
from storefront.checkout.metadata import extract_metadata_from_session
from storefront.errors import (
    DuplicateOrder,
    InvalidInput,
    InvalidSignature,
    OrderReconciliationFailed,
)
from storefront.orders import repository as orders_repository
from storefront.orders import service as orders_service
from storefront.orders.models import (
    CartLine,
    OrderStatus,
    PaymentMethod,
    PaymentRecord,
    ProcessorTotals,
)
from storefront.orders.pricing import from_minor_units

logger = logging.getLogger(__name__)

COMPLETED_EVENT = "checkout.session.completed"

def parse_verified_event(raw_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """Vérifie la signature puis parse le JSON (le body est ensuite considéré fiable)."""
    try:
        stripe_client.verify_signature(raw_body, signature)
    except stripe.SignatureVerificationError as e:
        logger.warning("webhooks.stripe invalid signature: %s", e)
        raise InvalidSignature("Invalid Stripe signature") from e
    try:
        event = json.loads(raw_body)
    except ValueError as e:
        raise InvalidInput("Invalid webhook payload") from e
    if not isinstance(event, dict):
        raise InvalidInput("Invalid webhook payload")
    return event

def _stripe_id(value: Any) -> Optional[str]:
    """Champ Stripe pouvant être un id ou un objet déplié."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None

def lines_from_stripe(line_items: List[Dict[str, Any]]) -> List[CartLine]:
    """
    Lignes Stripe (price.product déplié) -> lignes de commande.
    - product.metadata.id est l'id applicatif posé à la création de session; lignes sans id ignorées.
    """
    lines: List[CartLine] = []
    for item in line_items or []:
        price = item.get("price") or {}
        product = price.get("product")
        product_id = ((product or {}).get("metadata") or {}).get("id") if isinstance(product, dict) else None
        quantity = int(item.get("quantity") or 0)
        if not product_id or quantity <= 0:
            logger.warning("webhooks.stripe line item skipped id=%s", item.get("id"))
            continue
        unit_amount = price.get("unit_amount")
        lines.append(CartLine(
            product_id=str(product_id),
            quantity=quantity,
            unit_price=from_minor_units(unit_amount) if unit_amount is not None else None,
        ))
    return lines

def invoice_summary(invoice: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not invoice:
        return None
    return {
        "id": invoice.get("id"),
        "number": invoice.get("number"),
        "hosted_invoice_url": invoice.get("hosted_invoice_url"),
    }

def reconcile_session(session: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Crée la commande 'paid' d'une session complétée.
    Retour: la commande créée, la commande existante si déjà traitée, ou None si doublon détecté à l'insert.
    """
    session_id = session.get("id")
    if not session_id:
        raise OrderReconciliationFailed("Completed session without id")

    existing = orders_repository.find_order_by_session_id(session_id)
    if existing:
        logger.info("webhooks.stripe duplicate session_id=%s order_number=%s", session_id, existing.get("order_number"))
        return existing

    metadata = extract_metadata_from_session(session)
    lines = lines_from_stripe(stripe_client.list_line_items(session_id))
    invoice_id = _stripe_id(session.get("invoice"))
    invoice = invoice_summary(stripe_client.retrieve_invoice(invoice_id)) if invoice_id else None
    total_details = session.get("total_details") or {}

    payment = PaymentRecord(
        method=PaymentMethod.CARD,
        status=OrderStatus.PAID,
        checkout_session_id=session_id,
        payment_intent_id=_stripe_id(session.get("payment_intent")) or "",
        customer_id=_stripe_id(session.get("customer")) or metadata.customer_email,
        invoice=invoice,
        totals=ProcessorTotals(
            total_price=from_minor_units(session.get("amount_total")),
            amount_discount=from_minor_units(total_details.get("amount_discount")),
            currency=session.get("currency") or "",
        ),
    )
    try:
        return orders_service.commit_order(metadata, lines, payment)
    except DuplicateOrder:
        logger.info("webhooks.stripe concurrent duplicate session_id=%s", session_id)
        return None

def handle_event(raw_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Point d'entrée du webhook.
    - InvalidSignature / InvalidInput: rejet (400), aucun effet de bord.
    - OrderReconciliationFailed: échec de création (500), Stripe relivrera l'événement.
    Retour: {"received": True}
    """
    event = parse_verified_event(raw_body, signature)
    event_type = event.get("type")
    if event_type != COMPLETED_EVENT:
        logger.info("webhooks.stripe ignored type=%s id=%s", event_type, event.get("id"))
        return {"received": True}

    session = (event.get("data") or {}).get("object") or {}
    try:
        order = reconcile_session(session)
    except OrderReconciliationFailed:
        raise
    except Exception as e:
        raise OrderReconciliationFailed(f"Reconciliation failed for session {session.get('id')}: {e}") from e
    logger.info(
        "webhooks.stripe completed session_id=%s order_number=%s",
        session.get("id"), (order or {}).get("order_number"),
    )
    return {"received": True}
