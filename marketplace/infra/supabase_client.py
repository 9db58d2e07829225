"""
Client Supabase (base documentaire: tables products, users).

Le client est construit une seule fois au démarrage (lifespan) puis injecté dans
les handlers via marketplace.dependencies.get_db, sans singleton global.
"""
import logging
from typing import Optional
from supabase import create_client, Client
from postgrest.exceptions import APIError
from marketplace.config import SUPABASE_URL, SUPABASE_SERVICE_KEY
from marketplace.errors import UpstreamFailure

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"
USERS_TABLE = "users"


def create_db_client(url: str = SUPABASE_URL, service_key: str = SUPABASE_SERVICE_KEY) -> Optional[Client]:
    """
    Crée le client service-role (bypass RLS, opérations serveur).
    - Retourne None si l'URL ou la clé de service manque (les handlers répondront 500).
    """
    if not url or not service_key:
        logger.warning("SUPABASE_URL/SUPABASE_SERVICE_KEY manquant: base documentaire non configurée")
        return None
    return create_client(url, service_key)


def db_failure(action: str, e: APIError) -> UpstreamFailure:
    """
    Convertit une APIError PostgREST en UpstreamFailure (500).
    - Le message Supabase est relayé; le payload brut reste dans detail (logs)
    """
    payload = e.args[0] if e.args and isinstance(e.args[0], dict) else None
    message = getattr(e, "message", None) or (payload or {}).get("message") or str(e)
    return UpstreamFailure(f"Database {action} failed: {message}", status_code=500, detail=payload)
