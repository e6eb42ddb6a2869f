from typing import Any, Dict
import logging

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from storefront.products import service as products_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/products", tags=["Products API"])

# module storefront.products.views
@router.get("/search")
async def search(q: str = "", limit: int = products_service.MAX_RESULTS) -> Dict[str, Any]:
    """
    Recherche produit en lecture seule (utilisée par l'assistant et la barre de recherche).
    - Paramètres: q (>= 2 caractères), limit (<= 4).
    - Erreurs: 400 si la requête est trop courte (InvalidInput).
    """
    products = await run_in_threadpool(products_service.search_products, q, limit)
    return {"products": products}
