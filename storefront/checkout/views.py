import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from storefront.checkout import service as checkout_service
from storefront.errors import CheckoutFailed, InvalidInput
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["Checkout API"])

# module storefront.checkout.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout(request: Request):
    """
    Démarre le checkout du panier.
    - Entrée JSON: { "items": [{"productId", "quantity"}], "metadata": {...,"paymentMethod"} }
    - Étapes:
      1) Valider panier + métadonnées (400 sinon)
      2) Dispatcher vers le chemin de paiement (carte / mobile money / COD)
      3) Renvoyer {url, orderNumber}: redirection Stripe, partenaire, ou page de confirmation COD
    - Erreurs: 400 {"error"} si entrée invalide, 500 {"error": "Checkout failed"} sinon (sans détail interne)
    """
    try:
        body = await request.json()
    except Exception:
        raise InvalidInput("Cart is empty")

    lines, metadata = checkout_service.parse_checkout_request(body)
    try:
        outcome = await run_in_threadpool(checkout_service.begin_checkout, lines, metadata)
    except CheckoutFailed:
        logger.exception("Erreur create_checkout order_number=%s", metadata.order_number)
        raise
    logger.info("checkout %s order_number=%s kind=%s", metadata.payment_method.value, outcome.order_number, outcome.kind)
    return JSONResponse({"url": outcome.redirect_url, "orderNumber": outcome.order_number})
