from typing import Any, Dict
import logging

from storefront.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY
from storefront.infra.supabase_client import get_supabase

logger = logging.getLogger(__name__)

def health_supabase_info() -> Dict[str, Any]:
    """
    Diagnostic Supabase: configuration présente + requête minimale sur la table products.
    Ne lève jamais: l'erreur est renvoyée dans le corps.
    """
    info: Dict[str, Any] = {
        "url_set": bool(SUPABASE_URL),
        "anon_key_set": bool(SUPABASE_ANON),
        "service_key_set": bool(SUPABASE_SERVICE_KEY),
        "connect_ok": False,
    }
    try:
        get_supabase().table("products").select("id").limit(1).execute()
        info["connect_ok"] = True
    except Exception as e:
        logger.warning("health.supabase failed: %s", e)
        info["error"] = str(e)
    return info
