# module storefront.assistant.views

"""Endpoints de l'assistant conversationnel.
- POST /api/v1/assistant: {messages:[{from, text}], conversationId?} -> {reply, products}
- /api/v1/assistant/conversations/{id}[/login]: état de connexion du bot par conversation (Redis).
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from storefront.errors import InvalidInput
from storefront.utils.rate_limit import optional_rate_limit
from . import service as assistant_service
from .sessions import ConversationStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/assistant", tags=["Assistant"])


class ConversationLoginRequest(BaseModel):
    user_id: str = Field(alias="userId", min_length=1)


def _store(request: Request) -> Optional[ConversationStore]:
    r = getattr(request.app.state, "redis", None)
    return ConversationStore(r) if r is not None else None


def require_store(request: Request) -> ConversationStore:
    store = _store(request)
    if store is None:
        raise HTTPException(status_code=503, detail="Conversation store unavailable")
    return store


@router.post("", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
async def ask(request: Request):
    """
    Répond à la conversation (FAQ ou recherche produit, <= 4 produits).
    Erreurs: 400 {"error": "No messages provided"}; 500 {"error": "Something went wrong."}.
    """
    try:
        body = await request.json()
    except Exception:
        raise InvalidInput("No messages provided")
    body = body if isinstance(body, dict) else {}

    try:
        result = await run_in_threadpool(assistant_service.answer, body.get("messages"))
    except InvalidInput:
        raise
    except Exception:
        logger.exception("Erreur assistant")
        return JSONResponse({"error": "Something went wrong."}, status_code=500)

    conversation_id = body.get("conversationId")
    store = _store(request)
    if conversation_id and result.query and store is not None:
        try:
            await store.remember_search(conversation_id, result.query)
        except (InvalidInput, RedisError) as e:
            logger.warning("assistant.remember_search skipped conversation=%s: %s", conversation_id, e)
    return {"reply": result.reply, "products": result.products}


@router.post("/conversations/{conversation_id}/login")
async def login(conversation_id: str, body: ConversationLoginRequest, store: ConversationStore = Depends(require_store)) -> Dict[str, Any]:
    try:
        state = await store.login(conversation_id, body.user_id)
    except RedisError:
        logger.exception("Erreur assistant login")
        raise HTTPException(status_code=503, detail="Conversation store unavailable")
    return {"conversationId": conversation_id, "userId": state["user_id"]}


@router.delete("/conversations/{conversation_id}/login")
async def logout(conversation_id: str, store: ConversationStore = Depends(require_store)) -> Dict[str, Any]:
    try:
        await store.logout(conversation_id)
    except RedisError:
        logger.exception("Erreur assistant logout")
        raise HTTPException(status_code=503, detail="Conversation store unavailable")
    return {"conversationId": conversation_id, "loggedOut": True}


@router.get("/conversations/{conversation_id}")
async def conversation_state(conversation_id: str, store: ConversationStore = Depends(require_store)) -> Dict[str, Any]:
    try:
        state = await store.get(conversation_id)
    except RedisError:
        logger.exception("Erreur assistant state")
        raise HTTPException(status_code=503, detail="Conversation store unavailable")
    return {"conversationId": conversation_id, "state": state}
