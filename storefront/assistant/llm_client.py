"""
Client minimal d'une API de chat compatible OpenAI (POST /chat/completions) via httpx.
"""
from typing import Any, Dict, List
import logging

import httpx

from storefront import config
from storefront.errors import UpstreamProcessorError

logger = logging.getLogger(__name__)

def chat_completion(messages: List[Dict[str, str]], timeout: float = 20.0) -> str:
    """
    Envoie la conversation au modèle et renvoie le contenu texte du premier choix ("" si absent).
    - Clé manquante, réseau en échec ou statut >= 400: UpstreamProcessorError.
    """
    if not config.OPENAI_API_KEY:
        raise UpstreamProcessorError("OPENAI_API_KEY manquant", public_message="Assistant unavailable")
    try:
        resp = httpx.post(
            f"{config.OPENAI_BASE_URL}/chat/completions",
            headers={"Authorization": f"Bearer {config.OPENAI_API_KEY}"},
            json={"model": config.OPENAI_MODEL, "messages": messages},
            timeout=timeout,
        )
    except httpx.HTTPError as e:
        raise UpstreamProcessorError(f"LLM API unreachable: {e}", public_message="Assistant unavailable") from e
    if resp.status_code >= 400:
        logger.warning("assistant.llm status=%s body=%s", resp.status_code, resp.text[:200])
        raise UpstreamProcessorError(f"LLM API error {resp.status_code}", public_message="Assistant unavailable")

    data: Dict[str, Any] = resp.json()
    choices = data.get("choices") or []
    if not choices:
        return ""
    return ((choices[0] or {}).get("message") or {}).get("content") or ""
