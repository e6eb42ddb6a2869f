"""
Rate limiting optionnel des endpoints mutatifs (checkout, COD, assistant).
- fastapi-limiter (Redis) quand le lifespan l'a initialisé.
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (dev, tests).
- Sinon (limiter désactivé ou indisponible): aucune limite, jamais de 429 parasite en prod.
"""
from typing import Optional, Dict, Any
from urllib.parse import urlparse
import hashlib
import logging
import os
import time

from fastapi import Request, Response, HTTPException

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"

def _client_key(request: Request) -> str:
    # Priorité: utilisateur connecté (hashé) puis IP
    user_id = request.headers.get(USER_ID_HEADER)
    path = request.url.path
    if user_id:
        h = hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"

def _local_hit(request: Request, key: str, times: int, seconds: int) -> None:
    now = time.time()
    store = getattr(request.app.state, "_rl_store", {})
    # Purge des clés dont la fenêtre est expirée
    for k in [k for k, ts in store.items() if not ts or now - ts[-1] >= seconds]:
        del store[k]
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        key = _client_key(request)

        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, key, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter import FastAPILimiter
        from fastapi_limiter.depends import RateLimiter
        if getattr(FastAPILimiter, "redis", None) is None:
            return

        async def _identifier(req: Request) -> str:
            return _client_key(req)

        limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)
        try:
            await limiter(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Redis injoignable en cours de route: on laisse passer
            logger.warning("rate limiter unavailable: %s", e)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend: Optional[str] = "redis" if limiter_ready else None
    if backend is None and os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if backend == "redis" and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {
            "scheme": p.scheme,
            "host": p.hostname,
            "port": p.port,
        }
    return info
