"""
Gestionnaires d'exceptions.
- StorefrontError (et sous-classes): corps {"error": message public} + status propre à l'erreur.
- RequestValidationError: 400 {"error": "Invalid request"} (même forme que les erreurs métier).
- HTTPException: corps JSON FastAPI standard {"detail": ...}.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.errors import StorefrontError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    """
    Enregistre les handlers.
    - Les erreurs 4xx sont journalisées en warning, les 5xx ont déjà été loguées (logger.exception) par la vue.
    - Aucun détail interne (cause chaînée) n'est exposé au client.
    """
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if exc.status_code < 500:
            logger.warning("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.error})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.warning("%s %s -> 400 %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
