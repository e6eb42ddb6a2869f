"""
Cas d'usage 'assistant': recherche produit conversationnelle.
Étapes:
1) Classification d'intention par le modèle: "search" (défaut) ou "question".
2) "question": réponse FAQ générée par le modèle, sans produits.
3) "search": extraction du mot-clé par le modèle, recherche (<= 4 produits), réponse listant les liens produit.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import logging

from storefront.config import STORE_CURRENCY
from storefront.errors import InvalidInput
from storefront.products import service as products_service
from . import llm_client

logger = logging.getLogger(__name__)

INTENT_PROMPT = (
    'Does the user want to search for a product? Reply ONLY in JSON format: '
    '{"intent": "search"} or {"intent": "question"}.'
)
FAQ_PROMPT = (
    "You are a helpful e-commerce assistant. Answer questions about how to place an order, "
    "how to pay, check order status, and other website help."
)
KEYWORD_PROMPT = 'Extract the main product keyword(s) as JSON like: { "query": "sneakers" }. Only return JSON.'

DEFAULT_SEARCH_TERM = "shoes"
CURRENCY_SYMBOLS = {"bdt": "৳", "usd": "$", "eur": "€", "gbp": "£"}

@dataclass
class AssistantAnswer:
    reply: str
    products: List[Dict[str, Any]] = field(default_factory=list)
    intent: str = "search"
    query: Optional[str] = None

def to_chat_messages(messages: Any) -> List[Dict[str, str]]:
    """[{from, text}] -> messages du modèle (from == "user" -> user, sinon assistant)."""
    if not isinstance(messages, list) or not messages:
        raise InvalidInput("No messages provided")
    chat: List[Dict[str, str]] = []
    for m in messages:
        m = m if isinstance(m, dict) else {}
        chat.append({
            "role": "user" if m.get("from") == "user" else "assistant",
            "content": str(m.get("text") or ""),
        })
    return chat

def _json_field(raw: str, key: str) -> Optional[str]:
    """Lit un champ d'une réponse JSON du modèle (blocs ``` tolérés); None si illisible."""
    text = (raw or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    value = parsed.get(key)
    return str(value).strip() if value else None

def classify_intent(chat: List[Dict[str, str]]) -> str:
    raw = llm_client.chat_completion(chat + [{"role": "system", "content": INTENT_PROMPT}])
    intent = _json_field(raw, "intent")
    return "question" if intent == "question" else "search"

def extract_search_term(chat: List[Dict[str, str]]) -> str:
    raw = llm_client.chat_completion(chat + [{"role": "system", "content": KEYWORD_PROMPT}])
    term = _json_field(raw, "query") or ""
    if len(term) < products_service.MIN_QUERY_LENGTH:
        return DEFAULT_SEARCH_TERM
    return term

def format_price(price: Any) -> str:
    symbol = CURRENCY_SYMBOLS.get(STORE_CURRENCY, f"{STORE_CURRENCY.upper()} ")
    value = float(price or 0)
    amount = str(int(value)) if value.is_integer() else f"{value:.2f}"
    return f"{symbol}{amount}"

def format_reply(term: str, products: List[Dict[str, Any]]) -> str:
    if products:
        listing = "\n".join(
            f"- {p['name']} ({format_price(p.get('price'))}) → /product/{p.get('slug') or ''}" for p in products
        )
    else:
        listing = "No products found."
    return f'Here are some products matching "{term}":\n{listing}'

def answer(messages: Any) -> AssistantAnswer:
    """
    Répond à une conversation.
    - InvalidInput si la liste de messages est vide ou absente.
    - Les erreurs du modèle (UpstreamProcessorError) remontent à la vue.
    """
    chat = to_chat_messages(messages)
    intent = classify_intent(chat)
    if intent == "question":
        reply = llm_client.chat_completion([{"role": "system", "content": FAQ_PROMPT}] + chat)
        return AssistantAnswer(reply=reply or "I'm here to help!", intent=intent)

    term = extract_search_term(chat)
    products = products_service.search_products(term, limit=products_service.MAX_RESULTS)
    logger.info("assistant.search term=%s results=%d", term, len(products))
    return AssistantAnswer(reply=format_reply(term, products), products=products, intent=intent, query=term)
