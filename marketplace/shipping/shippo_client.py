"""
Adaptateur Shippo (API REST via httpx).

- Authentification: en-tête "Authorization: ShippoToken <clé>"
- Appels synchrones uniquement: le flag "async" envoyé à Shippo vaut toujours False
- Réponse non-2xx: UpstreamFailure avec le code HTTP et le détail d'erreur de Shippo
"""
import logging
from typing import Any, Dict, Optional

import httpx

from marketplace.errors import UpstreamFailure

logger = logging.getLogger(__name__)


class ShippoClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.goshippo.com",
        *,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"ShippoToken {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _post(self, path: str, payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        try:
            resp = self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.exception("shippo.%s transport error", action)
            raise UpstreamFailure(f"Shippo {action} failed: {e}", status_code=500)
        if resp.is_error:
            detail = _error_detail(resp)
            logger.error("shippo.%s status=%s detail=%s", action, resp.status_code, detail)
            raise UpstreamFailure(detail, status_code=resp.status_code, detail=resp.text)
        try:
            return resp.json()
        except ValueError:
            raise UpstreamFailure(f"Shippo {action}: invalid JSON response", status_code=500)

    def create_shipment(self, *, address_from: Dict[str, Any], address_to: Dict[str, Any], parcels: list) -> Dict[str, Any]:
        """
        POST /shipments/: crée un envoi et renvoie l'objet shipment (rates inclus).
        """
        payload = {
            "address_from": address_from,
            "address_to": address_to,
            "parcels": parcels,
            "async": False,
        }
        return self._post("/shipments/", payload, "shipment")

    def purchase_label(self, *, rate_object_id: str, label_file_type: str = "PDF") -> Dict[str, Any]:
        """
        POST /transactions/: achète l'étiquette correspondant au tarif choisi.
        """
        payload = {
            "rate": rate_object_id,
            "label_file_type": label_file_type,
            "async": False,
        }
        return self._post("/transactions/", payload, "label")

    def refund_label(self, transaction_id: str) -> Dict[str, Any]:
        """
        POST /refunds/: annule (void) une étiquette achetée.
        """
        return self._post("/refunds/", {"transaction": transaction_id, "async": False}, "label refund")


def _error_detail(resp: httpx.Response) -> str:
    # Shippo renvoie {"detail": "..."} ou un dict {champ: [messages]}
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"Shippo error {resp.status_code}"
    if isinstance(data, dict):
        if data.get("detail"):
            return str(data["detail"])
        if data.get("messages"):
            return str(data["messages"])
        parts = [f"{k}: {v}" for k, v in data.items()]
        if parts:
            return "; ".join(parts)
    return str(data)
