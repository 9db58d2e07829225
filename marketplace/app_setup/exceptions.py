"""
Gestionnaires d'exceptions.
- Toute erreur répond {"error": "<message>"} avec le bon code HTTP: jamais de stack trace côté client.
- MarketplaceError: code porté par l'exception (400/404/405/409/5xx)
- HTTPException Starlette: 404/405 du routage, 429 du rate limiting
- RequestValidationError: 400 (paramètres de chemin/query invalides)
- Exception: 500 générique, journalisée
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.errors import MarketplaceError, UpstreamFailure

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(MarketplaceError)
    async def marketplace_error(request: Request, exc: MarketplaceError):
        if isinstance(exc, UpstreamFailure):
            logger.warning("upstream failure path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "request"
        return JSONResponse(status_code=400, content={"error": f"Invalid {field}: {first.get('msg', 'invalid value')}"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Erreur non gérée path=%s", request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
