"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `storefront.asgi:app`.
- Toute la configuration FastAPI (routes, middlewares, lifespan) est centralisée dans
  storefront.app_setup, ce fichier ne fait qu'exposer l'instance `app`.
"""

from storefront.app import app

__all__ = ["app"]
