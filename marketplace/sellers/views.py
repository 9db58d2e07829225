import logging

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from marketplace.dependencies import get_stripe, get_db
from marketplace.errors import MarketplaceError
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.requests import read_json
from marketplace.sellers import service as sellers_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Sellers"])


@router.post("/createConnectedAccount", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_connected_account(request: Request, gateway=Depends(get_stripe), db=Depends(get_db)):
    """
    Onboarding vendeur Stripe Connect.
    - Entrée JSON: {userId, email, returnUrl?, refreshUrl?}
    - Retour: {accountId, url}
    - Erreurs: 400 si userId/email manquant, 500 si Stripe ou la base échoue
    """
    body = await read_json(request)
    try:
        return JSONResponse(await run_in_threadpool(sellers_service.create_connected_account, gateway, db, body))
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur create_connected_account")
        return JSONResponse(status_code=500, content={"error": str(e)})


@router.post("/checkSellerStatus")
async def check_seller_status(request: Request, gateway=Depends(get_stripe), db=Depends(get_db)):
    """Retour: {connected, chargesEnabled, detailsSubmitted, payoutsEnabled?}"""
    body = await read_json(request)
    try:
        return JSONResponse(await run_in_threadpool(sellers_service.check_seller_status, gateway, db, body))
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Erreur check_seller_status")
        return JSONResponse(status_code=500, content={"error": str(e)})
