"""
Accès aux données pour la feature 'products' (table 'products').
"""
from typing import Iterable, Dict, Any, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"
SEARCH_COLUMNS = "id, name, price, slug, image_url"

# module storefront.products.repository
def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    """
    Lecture ponctuelle d'un produit par id (service-role: lecture fraîche, sans cache).
    - Retourne None si absent.
    - Les erreurs réseau/PostgREST sont propagées à l'appelant.
    """
    res = (
        supabase_client.get_service_supabase()
        .table(PRODUCTS_TABLE)
        .select("*")
        .eq("id", str(product_id))
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    """
    Récupère les produits par leurs IDs.
    - Retourne [] si ids vide. Les erreurs sont propagées (le checkout doit échouer).
    """
    if not ids:
        return []
    res = (
        supabase_client.get_service_supabase()
        .table(PRODUCTS_TABLE)
        .select("*")
        .in_("id", [str(i) for i in ids])
        .execute()
    )
    return res.data or []

def get_products_map(ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un dict {id: produit} à partir d'une liste d'IDs.
    """
    products = fetch_products_by_ids(list(ids))
    return {str(p.get("id")): p for p in products}

def compare_and_set_stock(product_id: str, expected: Any, new_stock: int) -> bool:
    """
    Patch partiel conditionnel: stock = new_stock SI stock vaut encore `expected`.
    Retourne True si une ligne a été mise à jour, False si la valeur a changé entre-temps.
    """
    res = (
        supabase_client.get_service_supabase()
        .table(PRODUCTS_TABLE)
        .update({"stock": new_stock})
        .eq("id", str(product_id))
        .eq("stock", expected)
        .execute()
    )
    return bool(res.data)

def search_products_by_name(term: str, limit: int = 4) -> List[dict]:
    """
    Recherche insensible à la casse sur le nom produit (client anon, lecture seule).
    - Retourne [] en cas d'erreur (la recherche n'est jamais bloquante).
    """
    try:
        res = (
            supabase_client.get_supabase()
            .table(PRODUCTS_TABLE)
            .select(SEARCH_COLUMNS)
            .ilike("name", f"%{term}%")
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("products.repository.search_products_by_name failed term=%s", term)
        return []
