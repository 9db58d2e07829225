"""
Accès aux données pour la feature 'orders' (table products).
"""
import logging
from typing import Optional

from marketplace.infra.supabase_client import PRODUCTS_TABLE

logger = logging.getLogger(__name__)

# module marketplace.orders.repository
def relist_product(db, product_id: str) -> Optional[dict]:
    """
    Remet une annonce en vente après annulation.
    - sold=False, status="available"; efface sold_timestamp, buyer_id, payment_intent_id
    - Retour: la ligne mise à jour, ou None si aucune ligne ne correspond
    - Les erreurs Supabase sont propagées: l'appelant décide si elles sont fatales
    """
    res = (
        db.table(PRODUCTS_TABLE)
        .update({
            "sold": False,
            "status": "available",
            "sold_timestamp": None,
            "buyer_id": None,
            "payment_intent_id": None,
        })
        .eq("id", product_id)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None
