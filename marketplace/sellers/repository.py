"""
Accès aux données pour la feature 'sellers' (table users).
Seul l'onboarding vendeur écrit stripe_account_id; les autres features le lisent.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from postgrest.exceptions import APIError

from marketplace.infra.supabase_client import USERS_TABLE, db_failure

logger = logging.getLogger(__name__)


def get_stripe_account_id(db, user_id: str) -> Optional[str]:
    """
    Compte Connect associé à l'utilisateur, ou None s'il n'en a pas encore.
    - Les erreurs Supabase sont propagées (pas de création de compte en double sur erreur de lecture)
    """
    try:
        res = (
            db.table(USERS_TABLE)
            .select("id, stripe_account_id")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        logger.exception("sellers.repository.get_stripe_account_id failed user_id=%s", user_id)
        raise db_failure("read", e)
    rows = res.data or []
    if not rows:
        return None
    return rows[0].get("stripe_account_id") or None


def save_stripe_account_id(db, user_id: str, account_id: str, email: str) -> None:
    """Upsert (merge) de l'association user_id -> stripe_account_id."""
    try:
        (
            db.table(USERS_TABLE)
            .upsert({
                "id": user_id,
                "email": email,
                "stripe_account_id": account_id,
                "stripe_account_created_at": datetime.now(timezone.utc).isoformat(),
            })
            .execute()
        )
    except APIError as e:
        # Le compte Stripe existe déjà: on le journalise pour rattachement manuel
        logger.exception("sellers.repository.save_stripe_account_id failed user_id=%s account=%s", user_id, account_id)
        raise db_failure("write", e)
    logger.info("sellers.repository.save_stripe_account_id user_id=%s account=%s", user_id, account_id)
