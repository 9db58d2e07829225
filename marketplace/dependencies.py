"""
Dépendances FastAPI: accès aux collaborateurs construits au démarrage (app.state).

Les clients ne sont jamais des globals de module: le lifespan les pose sur
app.state et les handlers les reçoivent via Depends(...). Les tests remplacent
ces dépendances par app.dependency_overrides.
"""
from typing import Optional
from fastapi import Request

from marketplace.errors import ConfigurationError


def get_stripe(request: Request):
    gateway = getattr(request.app.state, "stripe", None)
    if gateway is None:
        raise ConfigurationError("Server configuration error")
    return gateway


def get_shippo(request: Request):
    client = getattr(request.app.state, "shippo", None)
    if client is None:
        raise ConfigurationError("Shippo API key not configured")
    return client


def get_optional_shippo(request: Request):
    # L'annulation n'a besoin de Shippo que si une étiquette est à annuler
    return getattr(request.app.state, "shippo", None)


def get_db(request: Request):
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise ConfigurationError("Database not configured")
    return db


def get_optional_db(request: Request):
    return getattr(request.app.state, "db", None)


def get_message_store(request: Request):
    store = getattr(request.app.state, "message_store", None)
    if store is None:
        raise ConfigurationError("Message store not configured")
    return store


def get_idempotency_key(request: Request) -> Optional[str]:
    """Clé d'idempotence fournie par l'appelant (en-tête Idempotency-Key)."""
    value = (request.headers.get("idempotency-key") or "").strip()
    return value or None
