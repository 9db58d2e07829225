"""
Taxonomie des erreurs du backend.

Chaque exception porte son code HTTP; le handler global
(marketplace.app_setup.exceptions) les transforme en {"error": "<message>"}.
- InvalidArgument: champ requis manquant ou mal formé (400)
- MethodNotAllowed: méthode HTTP non supportée (405)
- NotFound: ressource référencée absente (404)
- InvalidState: ressource dans un état incompatible (400)
- Conflict: écriture concurrente détectée (409)
- UpstreamFailure: appel collaborateur échoué (code du collaborateur ou 500)
- ConfigurationError: secret requis manquant (500)
"""
from typing import Any, Optional


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(MarketplaceError):
    status_code = 400


class MethodNotAllowed(MarketplaceError):
    status_code = 405


class NotFound(MarketplaceError):
    status_code = 404


class InvalidState(MarketplaceError):
    status_code = 400


class Conflict(MarketplaceError):
    status_code = 409


class ConfigurationError(MarketplaceError):
    status_code = 500


class UpstreamFailure(MarketplaceError):
    """
    Échec d'un collaborateur (Stripe, Shippo, Supabase).
    - status_code: code relayé depuis le collaborateur si disponible, sinon 500
    - detail: corps d'erreur brut du collaborateur (logs uniquement)
    """
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message, status_code=status_code)
        self.detail = detail
