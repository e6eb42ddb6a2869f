"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Crée le client Redis asynchrone partagé (app.state.redis): rate limiting + état des conversations de l'assistant.
- Initialise FastAPILimiter sur ce client.
- Variables d'environnement supportées:
  - RATE_LIMIT_REDIS_URL: URL Redis (défaut redis://127.0.0.1:6379/0)
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de rate limiting Redis (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback mémoire si l'init échoue
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

try:
    from fakeredis import FakeAsyncRedis  # tests only
except ImportError:
    FakeAsyncRedis = None

def create_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        if FakeAsyncRedis is None:
            raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
        return FakeAsyncRedis(decode_responses=True)
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Configure Redis + rate limiting et gère les fallbacks.
    - En cas d'échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    - Les logs indiquent l'état effectif (enabled/disabled) pour observabilité.
    """
    logger = logging.getLogger("uvicorn.error")
    r = None
    try:
        r = create_redis()
    except Exception as e:
        logger.warning(f"Redis client unavailable: {e}")
    app.state.redis = r

    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        try:
            if r is None:
                raise RuntimeError("no redis client")
            await FastAPILimiter.init(r)
            app.state.rate_limit_enabled = True
            logger.info("Rate limiting enabled")
        except Exception as e:
            if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
                app.state.rate_limit_enabled = True
                logger.warning(f"Rate limiting falling back to local in-memory due to init error: {e}")
            else:
                app.state.rate_limit_enabled = False
                logger.warning(f"Rate limiting disabled due to init error: {e}")

    yield

    if r is not None:
        try:
            await r.aclose()
        except Exception as e:
            logger.warning(f"Redis close error: {e}")
