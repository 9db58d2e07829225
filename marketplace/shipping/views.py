"""
Endpoints Shipping (proxy Shippo).
- /shippingRates: chemin legacy (ZIP destinataire + adresse vendeur)
- /shippoGetRates: adresses et colis complets
- /shippoCreateLabel: achat d'étiquette pour un tarif
Les erreurs Shippo sont relayées avec leur code HTTP (UpstreamFailure).
"""
import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from marketplace.dependencies import get_shippo
from marketplace.errors import MarketplaceError
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.requests import read_json
from marketplace.shipping import service as shipping_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Shipping"])


@router.post("/shippingRates")
async def shipping_rates(request: Request, shippo=Depends(get_shippo)):
    """Tarifs pour un ZIP destinataire (colis standard 12x8x5 in, 2 lb)."""
    body = await read_json(request)
    try:
        return JSONResponse(await run_in_threadpool(shipping_service.get_rates_for_zip, shippo, body))
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur shipping_rates")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/shippoGetRates")
async def shippo_get_rates(request: Request, shippo=Depends(get_shippo)):
    body = await read_json(request)
    try:
        return JSONResponse(await run_in_threadpool(shipping_service.get_rates, shippo, body))
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur shippo_get_rates")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/shippoCreateLabel", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def shippo_create_label(request: Request, shippo=Depends(get_shippo)):
    """
    Achète l'étiquette du tarif choisi.
    - Entrée JSON: {rateObjectId, labelFileType?, async?}
    - Retour: l'objet transaction Shippo (label_url, tracking_number, ...)
    """
    body = await read_json(request)
    try:
        return JSONResponse(await run_in_threadpool(shipping_service.create_label, shippo, body))
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur shippo_create_label")
        return JSONResponse(status_code=500, content={"error": str(e)})
