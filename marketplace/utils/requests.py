"""
Helpers de lecture des requêtes JSON (body et montants en centimes).
"""
from typing import Any, Dict, Optional
from fastapi import Request

from marketplace.errors import InvalidArgument


async def read_json(request: Request) -> Dict[str, Any]:
    """
    Lit le body JSON d'une requête.
    - Body vide => {}
    - JSON invalide ou non-objet => InvalidArgument (400)
    """
    raw = await request.body()
    if not raw or not raw.strip():
        return {}
    try:
        body = await request.json()
    except ValueError:
        raise InvalidArgument("Invalid JSON body")
    if not isinstance(body, dict):
        raise InvalidArgument("JSON body must be an object")
    return body


def parse_amount(value: Any, field: str, *, default: Optional[int] = 0) -> Optional[int]:
    """
    Convertit un montant en centimes (entier >= 0).
    - Accepte int, float entier (1600.0) et chaîne de chiffres ("1600")
    - Absent (None/"") => default
    - Sinon InvalidArgument
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidArgument(f"{field} must be an integer amount in cents")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, float) and value.is_integer():
        amount = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise InvalidArgument(f"{field} must be an integer amount in cents")
    if amount < 0:
        raise InvalidArgument(f"{field} must not be negative")
    return amount


def require_str(body: Dict[str, Any], field: str, message: Optional[str] = None) -> str:
    value = body.get(field)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(message or f"Missing {field}")
    return value.strip()


def optional_str(body: Dict[str, Any], field: str) -> Optional[str]:
    value = body.get(field)
    if value is None:
        return None
    value = str(value).strip()
    return value or None
