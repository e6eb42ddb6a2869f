from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import storefront.infra.supabase_client as supabase_client
from storefront.errors import DuplicateOrder, OrderPersistError

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
UNIQUE_VIOLATION = "23505"

def _error_code(e: APIError) -> Optional[str]:
    code = getattr(e, "code", None)
    if not code and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return code

def insert_order(order: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insère le document commande (un seul appel create, service-role).
    - 23505 (index unique sur stripe_checkout_session_id): DuplicateOrder.
    - Toute autre erreur: OrderPersistError (cause chaînée).
    """
    try:
        res = supabase_client.get_service_supabase().table(ORDERS_TABLE).insert(order).execute()
    except APIError as e:
        if _error_code(e) == UNIQUE_VIOLATION:
            raise DuplicateOrder(f"Order already exists for session {order.get('stripe_checkout_session_id')}") from e
        raise OrderPersistError(f"Insert order {order.get('order_number')} failed: {e}") from e
    except Exception as e:
        raise OrderPersistError(f"Insert order {order.get('order_number')} failed: {e}") from e
    rows = res.data or []
    return rows[0] if isinstance(rows, list) and rows else order

def find_order_by_session_id(session_id: str) -> Optional[Dict[str, Any]]:
    """
    Commande déjà enregistrée pour une session de paiement (clé de dédup webhook).
    Les erreurs sont propagées: sans vérification possible, le webhook doit échouer et être relivré.
    """
    res = (
        supabase_client.get_service_supabase()
        .table(ORDERS_TABLE)
        .select("id, order_number, stripe_checkout_session_id")
        .eq("stripe_checkout_session_id", session_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def fetch_user_orders(user_id: str, limit: int = 50) -> List[dict]:
    """
    Commandes d'un client, les plus récentes d'abord.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("order_date", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_user_orders failed user_id=%s", user_id)
        return []
