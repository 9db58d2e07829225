import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from marketplace.dependencies import get_stripe, get_optional_shippo, get_optional_db, get_idempotency_key
from marketplace.errors import MarketplaceError
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.requests import read_json
from marketplace.orders import service as orders_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Orders"])


@router.post("/cancelOrder", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def cancel_order(
    request: Request,
    gateway=Depends(get_stripe),
    shippo=Depends(get_optional_shippo),
    db=Depends(get_optional_db),
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
):
    """
    Annule une commande payée.
    - Entrée JSON: {paymentIntentId, productId?, reason?, cancelledBy?, shippoTransactionId?}
    - Retour: {success, refundId, refundAmount, cancellationFee, labelVoided, message, compensations}
    - Erreurs: 400 si paymentIntentId manquant ou aucune charge, 404 si PaymentIntent inconnu,
      500 si le remboursement échoue. Void d'étiquette et remise en vente ne changent pas le code HTTP.
    """
    body = await read_json(request)
    try:
        result = await run_in_threadpool(
            orders_service.cancel_order, gateway, shippo, db, body, idempotency_key=idempotency_key
        )
        return JSONResponse(result.to_response())
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur cancel_order")
        return JSONResponse(status_code=500, content={"error": str(e)})
