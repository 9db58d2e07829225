from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from marketplace.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    state = request.app.state
    return {
        "ok": True,
        "collaborators": {
            "stripe": getattr(state, "stripe", None) is not None,
            "shippo": getattr(state, "shippo", None) is not None,
            "database": getattr(state, "db", None) is not None,
            "messaging": getattr(state, "message_store", None) is not None,
        },
    }

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return JSONResponse(rate_limit_health_info(request))
