"""
Accès aux données pour la feature 'listings' (table products).
"""
import logging
from typing import List, Sequence

from postgrest.exceptions import APIError

from marketplace.infra.supabase_client import PRODUCTS_TABLE, db_failure

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000

# module marketplace.listings.repository
def find_stale_sold_listings(db, cutoff_ms: int, page_size: int = PAGE_SIZE) -> List[dict]:
    """
    Annonces vendues dont sold_timestamp (epoch ms) <= cutoff_ms.
    - Pagination par range() (PostgREST plafonne le nombre de lignes par réponse)
    - Retour: [{id, name, sold_timestamp}, ...]
    """
    rows: List[dict] = []
    offset = 0
    while True:
        try:
            res = (
                db.table(PRODUCTS_TABLE)
                .select("id, name, sold_timestamp")
                .eq("sold", True)
                .lte("sold_timestamp", cutoff_ms)
                .order("id")
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except APIError as e:
            raise db_failure("query", e)
        page = res.data or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        offset += page_size


def delete_listings(db, ids: Sequence[str]) -> int:
    """Supprime un lot d'annonces par id. Retour: nombre d'ids envoyés."""
    if not ids:
        return 0
    try:
        db.table(PRODUCTS_TABLE).delete().in_("id", list(ids)).execute()
    except APIError as e:
        raise db_failure("delete", e)
    return len(ids)
