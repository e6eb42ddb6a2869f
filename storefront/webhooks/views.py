import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from storefront.errors import OrderReconciliationFailed
from storefront.webhooks import service as webhook_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Webhooks"])

# module storefront.webhooks.views
@router.post("/webhook", include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe (Checkout): consomme checkout.session.completed pour créer la commande.
    - Signature: Stripe-Signature + STRIPE_WEBHOOK_SECRET sur le body brut
    - Réponses: {"received": true}; 400 si signature/payload invalide; 500 si la commande
      n'a pas pu être créée (Stripe relivre l'événement)
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        result = await run_in_threadpool(webhook_service.handle_event, payload, sig_header)
    except OrderReconciliationFailed:
        logger.exception("Erreur stripe_webhook")
        raise
    return JSONResponse(result)
