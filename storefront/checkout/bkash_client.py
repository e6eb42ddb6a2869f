"""
Adaptateur mobile money (bKash): appel synchrone à l'API partenaire qui renvoie l'URL de paiement.
"""
from typing import Any, Dict, List
import logging

import httpx

from storefront.config import BKASH_API_URL
from storefront.errors import UpstreamProcessorError

logger = logging.getLogger(__name__)

# module storefront.checkout.bkash_client
def create_payment(items: List[Dict[str, Any]], metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    POST {items, metadata} vers l'API partenaire.
    Retour: dict de réponse contenant au moins "url" (et "paymentID" si fourni).
    - Réseau en échec, statut >= 400 ou réponse sans url: UpstreamProcessorError.
    """
    try:
        resp = httpx.post(BKASH_API_URL, json={"items": items, "metadata": metadata}, timeout=10)
    except httpx.HTTPError as e:
        raise UpstreamProcessorError(f"Bkash API unreachable: {e}") from e

    try:
        data = resp.json()
    except ValueError:
        data = {}
    if resp.status_code >= 400 or not isinstance(data, dict) or not data.get("url"):
        logger.warning("checkout.bkash status=%s body=%s", resp.status_code, str(data)[:200])
        raise UpstreamProcessorError("Bkash session creation failed")
    return data
