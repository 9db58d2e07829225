"""
Reaper des annonces vendues: supprime les produits vendus depuis plus de 90 jours.

Suppression par lots de 500 au plus, chaque lot validé avant le suivant.
Pas de transaction globale: une interruption laisse une suppression partielle,
qu'une nouvelle exécution termine (l'opération est idempotente).
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from marketplace.config import REAPER_BATCH_SIZE, SOLD_LISTING_RETENTION_DAYS
from . import repository

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


@dataclass
class ReaperResult:
    deleted_count: int
    batches: int

    @property
    def message(self) -> str:
        if not self.deleted_count:
            return "No products to delete"
        return f"Deleted {self.deleted_count} sold products older than {SOLD_LISTING_RETENTION_DAYS} days"

    def to_response(self) -> dict:
        return {"success": True, "message": self.message, "deletedCount": self.deleted_count}


def _sold_date(sold_timestamp) -> str:
    try:
        return datetime.fromtimestamp(int(sold_timestamp) / 1000, tz=timezone.utc).date().isoformat()
    except (TypeError, ValueError, OverflowError):
        return "?"


def delete_sold_products(db, now_ms: Optional[int] = None, batch_size: int = REAPER_BATCH_SIZE) -> ReaperResult:
    """
    - cutoff = now − 90 jours (epoch ms)
    - Lots de batch_size (<= 500), validés un par un, dernier lot partiel inclus
    - Aucun match: aucun lot, deleted_count=0
    """
    if batch_size <= 0 or batch_size > REAPER_BATCH_SIZE:
        raise ValueError(f"batch_size must be between 1 and {REAPER_BATCH_SIZE}")
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    cutoff_ms = now_ms - SOLD_LISTING_RETENTION_DAYS * DAY_MS

    logger.info("listings.delete_sold_products start cutoff_ms=%s", cutoff_ms)
    stale = repository.find_stale_sold_listings(db, cutoff_ms)
    if not stale:
        logger.info("listings.delete_sold_products: aucune annonce vendue de plus de %s jours", SOLD_LISTING_RETENTION_DAYS)
        return ReaperResult(deleted_count=0, batches=0)

    deleted = 0
    batches = 0
    for start in range(0, len(stale), batch_size):
        chunk = stale[start:start + batch_size]
        for row in chunk:
            logger.debug(
                "Deleting: %s (%s) - Sold: %s",
                row.get("id"), row.get("name") or "Unnamed", _sold_date(row.get("sold_timestamp")),
            )
        deleted += repository.delete_listings(db, [str(row["id"]) for row in chunk])
        batches += 1
        logger.info("listings.delete_sold_products committed batch=%s size=%s", batches, len(chunk))

    result = ReaperResult(deleted_count=deleted, batches=batches)
    logger.info("listings.delete_sold_products %s", result.message)
    return result
