# module storefront.orders.stock
"""Réconciliation du stock après l'écriture d'une commande.
- decrement_stock: lecture, plancher à zéro, écriture conditionnelle (compare-and-set) avec retry.
- update_stock_levels: applique la décrémentation à chaque ligne, erreurs isolées par article.
Les produits sans stock numérique ne suivent pas d'inventaire: ils sont ignorés.
"""
from typing import Iterable, List, Optional
import logging

from storefront.config import STOCK_UPDATE_MAX_RETRIES
from storefront.errors import StockUpdateError
from storefront.products import repository as products_repository

logger = logging.getLogger(__name__)

def _is_numeric_stock(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def decrement_stock(product_id: str, quantity: int, max_retries: Optional[int] = None) -> Optional[int]:
    """Décrémente le stock d'un produit, sans jamais passer sous zéro.
    - Retourne le nouveau stock, ou None si le produit est absent / sans stock numérique.
    - Si le stock change entre lecture et écriture, relit et recommence (max_retries).
    - StockUpdateError si les tentatives sont épuisées ou si le store échoue.
    """
    attempts = max_retries if max_retries is not None else STOCK_UPDATE_MAX_RETRIES
    if attempts < 1:
        raise ValueError("max_retries must be >= 1")
    try:
        for attempt in range(1, attempts + 1):
            product = products_repository.get_product(product_id)
            if not product or not _is_numeric_stock(product.get("stock")):
                logger.warning("orders.stock skip product_id=%s (missing or no numeric stock)", product_id)
                return None

            current = product["stock"]
            new_stock = max(current - quantity, 0)
            if products_repository.compare_and_set_stock(product_id, current, new_stock):
                logger.info("orders.stock product_id=%s %s -> %s", product_id, current, new_stock)
                return new_stock
            logger.info("orders.stock concurrent update product_id=%s attempt=%s", product_id, attempt)
    except StockUpdateError:
        raise
    except Exception as e:
        raise StockUpdateError(f"Stock update failed for {product_id}") from e
    raise StockUpdateError(f"Stock for {product_id} kept changing after {attempts} attempts")

def update_stock_levels(lines: Iterable) -> List[str]:
    """
    Décrémente le stock pour chaque ligne de commande.
    - Un échec sur un article est journalisé et n'interrompt pas les autres.
    - Retourne la liste des product_id en échec (vide si tout est passé).
    """
    failed: List[str] = []
    for line in lines:
        try:
            decrement_stock(line.product_id, line.quantity)
        except StockUpdateError:
            logger.exception("orders.stock failed product_id=%s quantity=%s", line.product_id, line.quantity)
            failed.append(line.product_id)
    return failed
