"""
État des conversations de l'assistant (connexion du bot, dernière recherche), stocké dans Redis.
- Clé: assistant:conversation:<id>, valeur JSON, expiration glissante (ASSISTANT_SESSION_TTL).
- Remplace un dictionnaire en mémoire: borné dans le temps et partagé entre workers.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import json
import re

from storefront.config import ASSISTANT_SESSION_TTL
from storefront.errors import InvalidInput

KEY_PREFIX = "assistant:conversation:"
_CONVERSATION_ID = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

class ConversationStore:
    def __init__(self, redis, ttl: Optional[int] = None):
        self.redis = redis
        self.ttl = int(ttl or ASSISTANT_SESSION_TTL)

    def key(self, conversation_id: str) -> str:
        cid = str(conversation_id or "").strip()
        if not _CONVERSATION_ID.match(cid):
            raise InvalidInput("Invalid conversation id")
        return f"{KEY_PREFIX}{cid}"

    async def get(self, conversation_id: str) -> Dict[str, Any]:
        raw = await self.redis.get(self.key(conversation_id))
        if not raw:
            return {}
        try:
            state = json.loads(raw)
        except ValueError:
            return {}
        return state if isinstance(state, dict) else {}

    async def _save(self, conversation_id: str, state: Dict[str, Any]) -> Dict[str, Any]:
        state["updated_at"] = _now()
        await self.redis.set(self.key(conversation_id), json.dumps(state), ex=self.ttl)
        return state

    async def login(self, conversation_id: str, user_id: str) -> Dict[str, Any]:
        user_id = str(user_id or "").strip()
        if not user_id:
            raise InvalidInput("Missing userId")
        state = await self.get(conversation_id)
        state["user_id"] = user_id
        state["logged_in_at"] = _now()
        return await self._save(conversation_id, state)

    async def logout(self, conversation_id: str) -> bool:
        """Supprime tout l'état de la conversation; True si un état existait."""
        return bool(await self.redis.delete(self.key(conversation_id)))

    async def remember_search(self, conversation_id: str, term: str) -> Dict[str, Any]:
        state = await self.get(conversation_id)
        state["last_search"] = term
        return await self._save(conversation_id, state)
