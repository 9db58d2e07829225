"""
Middlewares transverses de l'application.
- register_cors_middleware: CORS permissif façon Cloud Functions (préflight OPTIONS => 204)
- register_security_middleware: en-têtes de sécurité de base sur les réponses JSON
Notes:
- L'ordre d'ajout est important: le dernier ajouté s'exécute en premier.
"""
from typing import Dict, Optional
from fastapi import Request, FastAPI
from fastapi.responses import Response
from starlette.status import HTTP_204_NO_CONTENT

from marketplace.config import CORS_ORIGINS

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization, Idempotency-Key"


def _allowed_origin(origin: Optional[str]) -> Optional[str]:
    if "*" in CORS_ORIGINS:
        return "*"
    if origin and origin in CORS_ORIGINS:
        return origin
    return None


def _cors_headers(request: Request) -> Dict[str, str]:
    allowed = _allowed_origin(request.headers.get("origin"))
    if not allowed:
        return {}
    headers = {"Access-Control-Allow-Origin": allowed}
    if allowed != "*":
        headers["Vary"] = "Origin"
    return headers


def register_cors_middleware(app: FastAPI) -> None:
    """
    - OPTIONS sur n'importe quel chemin: 204 + Allow-Origin/Methods/Headers, sans atteindre les routes
    - Autres méthodes: ajoute Access-Control-Allow-Origin à la réponse
    """
    @app.middleware("http")
    async def cors(request: Request, call_next):
        if request.method == "OPTIONS":
            headers = _cors_headers(request)
            headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
            headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
            headers["Access-Control-Max-Age"] = "3600"
            return Response(status_code=HTTP_204_NO_CONTENT, headers=headers)
        response = await call_next(request)
        for name, value in _cors_headers(request).items():
            response.headers.setdefault(name, value)
        return response


def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        return response
