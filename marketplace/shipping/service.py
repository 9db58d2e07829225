"""
Cas d'usage 'shipping': tarifs et achat d'étiquettes via Shippo.

Deux chemins de tarification:
- legacy (get_rates_for_zip): ZIP destinataire (5 caractères exactement) + adresse vendeur,
  colis et destinataire par défaut
- actuel (get_rates): adresses et colis fournis par le front, validation déléguée à Shippo
"""
import logging
from typing import Any, Dict, List

from marketplace.errors import InvalidArgument, UpstreamFailure
from marketplace.utils.requests import optional_str

logger = logging.getLogger(__name__)

DEFAULT_PARCEL: Dict[str, str] = {
    "length": "12",
    "width": "8",
    "height": "5",
    "distance_unit": "in",
    "weight": "2",
    "mass_unit": "lb",
}

# module marketplace.shipping.service
def _legacy_addresses(zip_code: Any, sender: Any) -> Dict[str, Dict[str, Any]]:
    if not isinstance(zip_code, str) or len(zip_code) != 5:
        raise InvalidArgument("Invalid destination ZIP code")
    if not sender or not isinstance(sender, dict):
        raise InvalidArgument("Sender address is required")
    if not sender.get("zip") or not sender.get("city") or not sender.get("state"):
        raise InvalidArgument("Incomplete sender address (need city, state, zip)")
    return {
        "address_from": {
            "name": sender.get("name") or "Seller",
            "street1": sender.get("street1") or "123 Main St",
            "city": sender["city"],
            "state": sender["state"],
            "zip": sender["zip"],
            "country": "US",
        },
        "address_to": {
            "name": "Customer",
            "street1": "123 Customer St",
            "city": "Unknown",
            "state": "NY",
            "zip": zip_code,
            "country": "US",
        },
    }


def get_rates_for_zip(shippo, body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Chemin legacy: {zipCode, senderAddress{name?, street1?, city, state, zip}, parcel?}.
    - 400 si ZIP != 5 caractères, adresse vendeur absente ou incomplète
    - Retour: liste des tarifs Shippo (éventuellement vide)
    """
    addresses = _legacy_addresses(body.get("zipCode"), body.get("senderAddress"))
    parcel = body.get("parcel") if isinstance(body.get("parcel"), dict) else DEFAULT_PARCEL
    shipment = shippo.create_shipment(parcels=[parcel], **addresses)
    rates = shipment.get("rates") or []
    logger.info("shipping.get_rates_for_zip zip=%s rates=%s", body.get("zipCode"), len(rates))
    return rates


def get_rates(shippo, body: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Chemin actuel: {address_from, address_to, parcels | parcel}.
    - Vérifie seulement la présence des champs; Shippo valide le contenu
    """
    address_from = body.get("address_from")
    address_to = body.get("address_to")
    parcels = body.get("parcels")
    if parcels is None and body.get("parcel") is not None:
        parcels = [body["parcel"]]
    if not isinstance(address_from, dict) or not isinstance(address_to, dict):
        raise InvalidArgument("address_from and address_to are required")
    if isinstance(parcels, dict):
        parcels = [parcels]
    if not parcels or not isinstance(parcels, list):
        raise InvalidArgument("parcels are required")

    shipment = shippo.create_shipment(address_from=address_from, address_to=address_to, parcels=parcels)
    rates = shipment.get("rates") or []
    logger.info("shipping.get_rates shipment=%s rates=%s", shipment.get("object_id"), len(rates))
    return rates


def create_label(shippo, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Achète une étiquette pour le tarif choisi.
    - Entrée: {rateObjectId, labelFileType?="PDF", async?} (async ignoré: toujours synchrone)
    - Transaction Shippo en status ERROR => 400 avec les messages Shippo
    """
    rate_object_id = optional_str(body, "rateObjectId")
    if not rate_object_id:
        raise InvalidArgument("Missing rateObjectId")
    label_file_type = optional_str(body, "labelFileType") or "PDF"

    transaction = shippo.purchase_label(rate_object_id=rate_object_id, label_file_type=label_file_type)
    if (transaction.get("status") or "").upper() == "ERROR":
        messages = transaction.get("messages") or []
        text = "; ".join(str(m.get("text") if isinstance(m, dict) else m) for m in messages) or "Label purchase failed"
        logger.error("shipping.create_label rate=%s error=%s", rate_object_id, text)
        raise UpstreamFailure(text, status_code=400, detail=messages)
    logger.info("shipping.create_label rate=%s transaction=%s", rate_object_id, transaction.get("object_id"))
    return transaction
