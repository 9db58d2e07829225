import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from marketplace.dependencies import get_db
from marketplace.listings import service as listings_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Listings"])


@router.api_route("/deleteSoldProducts", methods=["GET", "POST"])
def delete_sold_products(db=Depends(get_db)):
    """
    Reaper déclenché (scheduler externe ou appel manuel).
    - Retour: {success, message, deletedCount}
    - Erreurs: 500 {success: False, error}
    """
    try:
        result = listings_service.delete_sold_products(db)
        return JSONResponse(result.to_response())
    except Exception as e:
        logger.exception("Erreur delete_sold_products")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
