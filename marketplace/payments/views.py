import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from marketplace.dependencies import get_stripe, get_idempotency_key
from marketplace.errors import MarketplaceError
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.requests import read_json
from marketplace.payments import service as payments_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])

# module marketplace.payments.views
@router.post("/createPaymentIntent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_payment_intent(
    request: Request,
    gateway=Depends(get_stripe),
    idempotency_key: Optional[str] = Depends(get_idempotency_key),
):
    """
    Crée un PaymentIntent Stripe (avec split vendeur si compte Connect fourni).
    - Entrée JSON: {amount, productAmount?, shippingAmount?, taxAmount?, currency?, sellerStripeAccountId?, productId?}
    - Validation avant tout appel Stripe: 400 si amount absent ou <= 0
    - Retour: {clientSecret, paymentIntentId}
    - Erreurs Stripe: 500 avec le message Stripe
    """
    body = await read_json(request)
    try:
        result = await run_in_threadpool(
            payments_service.create_payment_intent, gateway, body, idempotency_key=idempotency_key
        )
        return JSONResponse(result)
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur create_payment_intent")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to create payment intent"})
