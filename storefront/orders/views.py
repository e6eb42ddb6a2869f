# module storefront.orders.views

"""Endpoints de la feature Commandes.
- POST /api/v1/orders/cod: commande « paiement à la livraison » (validation + commit synchrone).
- GET /api/v1/orders: commandes du client courant (lecture seule).
Sécurité:
- L'authentification est assurée en amont (passerelle): l'identifiant client arrive dans X-User-Id.
- optional_rate_limit: limite la fréquence de création de commandes COD.
"""
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from storefront.errors import InvalidInput
from storefront.orders import service as orders_service
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/orders", tags=["Orders API"])


def require_user_id(x_user_id: str = Header(default="")) -> str:
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Non authentifié")
    return user_id


@router.post("/cod", status_code=201, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_cod_order(request: Request):
    """Crée une commande paiement à la livraison.
    Étapes:
    - Parse le JSON et valide champs requis + adresse complète (400 sinon).
    - Recalcule total/remise depuis les produits courants, enregistre la commande (status 'pending').
    - Décrémente le stock de chaque produit (best-effort).
    Réponse: 201 {"success": true, "order": {...}}; erreurs {"error": "..."} 400/500.
    """
    try:
        body = await request.json()
    except Exception:
        raise InvalidInput("Missing required fields in request body")

    try:
        order = await run_in_threadpool(orders_service.create_cod_order, body)
    except InvalidInput:
        raise
    except Exception:
        logger.exception("Erreur create_cod_order")
        return JSONResponse({"error": "Failed to create COD order"}, status_code=500)
    return JSONResponse({"success": True, "order": order}, status_code=201)


@router.get("")
async def my_orders(user_id: str = Depends(require_user_id)) -> Dict[str, Any]:
    """Commandes du client courant, les plus récentes d'abord (avec delivery_date estimée)."""
    orders = await run_in_threadpool(orders_service.list_customer_orders, user_id)
    return {"orders": orders}
