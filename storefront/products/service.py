"""
Cas d'usage 'products': recherche en lecture seule (consommée par l'assistant).
"""
from typing import Any, Dict, List

from storefront.errors import InvalidInput
from . import repository

MIN_QUERY_LENGTH = 2
MAX_RESULTS = 4

def normalize_product(row: Dict[str, Any]) -> Dict[str, Any]:
    try:
        price = float(row.get("price") or 0)
    except (TypeError, ValueError):
        price = 0.0
    return {
        "id": str(row.get("id") or ""),
        "name": row.get("name") or "",
        "price": price,
        "slug": row.get("slug") or "",
        "image": row.get("image_url"),
    }

def search_products(term: str, limit: int = MAX_RESULTS) -> List[Dict[str, Any]]:
    """
    Recherche des produits par nom.
    - term nettoyé, au moins 2 caractères (InvalidInput sinon).
    - limit borné à [1, MAX_RESULTS].
    """
    cleaned = (term or "").strip()
    if len(cleaned) < MIN_QUERY_LENGTH:
        raise InvalidInput(f"Type at least {MIN_QUERY_LENGTH} characters to search.")
    limit = max(1, min(int(limit or MAX_RESULTS), MAX_RESULTS))
    rows = repository.search_products_by_name(cleaned, limit=limit)
    return [normalize_product(r) for r in rows if r.get("id")][:limit]
