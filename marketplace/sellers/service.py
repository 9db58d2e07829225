"""Couche service de l'onboarding vendeur (Stripe Connect Express).
- create_connected_account: crée (une seule fois) le compte Connect et renvoie un lien d'onboarding neuf.
- check_seller_status: état du compte (paiements, virements, dossier complet).
"""
import logging
from typing import Any, Dict

from marketplace.config import CONNECT_COUNTRY, ONBOARDING_RETURN_URL, ONBOARDING_REFRESH_URL
from marketplace.utils.requests import optional_str, require_str
from . import repository

logger = logging.getLogger(__name__)


def create_connected_account(gateway, db, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    - Entrée: {userId, email, returnUrl?, refreshUrl?}
    - Réutilise le compte stocké s'il existe, sinon le crée puis le persiste
    - Chaque appel génère un nouveau lien (les liens Stripe expirent)
    - Retour: {accountId, url}
    """
    user_id = require_str(body, "userId", "Missing userId or email")
    email = require_str(body, "email", "Missing userId or email")

    account_id = repository.get_stripe_account_id(db, user_id)
    if account_id:
        logger.info("sellers.create_connected_account user_id=%s existing=%s", user_id, account_id)
    else:
        account = gateway.create_express_account(email=email, country=CONNECT_COUNTRY)
        account_id = account["id"]
        repository.save_stripe_account_id(db, user_id, account_id, email)
        logger.info("sellers.create_connected_account user_id=%s created=%s", user_id, account_id)

    link = gateway.create_onboarding_link(
        account_id=account_id,
        return_url=optional_str(body, "returnUrl") or ONBOARDING_RETURN_URL,
        refresh_url=optional_str(body, "refreshUrl") or ONBOARDING_REFRESH_URL,
    )
    return {"accountId": account_id, "url": link.get("url")}


def check_seller_status(gateway, db, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    - Entrée: {userId}
    - Sans compte stocké: {connected: False, chargesEnabled: False, detailsSubmitted: False}
    - Sinon: lecture du compte Stripe
    """
    user_id = require_str(body, "userId", "Missing userId")
    account_id = repository.get_stripe_account_id(db, user_id)
    if not account_id:
        return {"connected": False, "chargesEnabled": False, "detailsSubmitted": False}

    account = gateway.retrieve_account(account_id)
    return {
        "connected": True,
        "accountId": account_id,
        "chargesEnabled": bool(account.get("charges_enabled")),
        "detailsSubmitted": bool(account.get("details_submitted")),
        "payoutsEnabled": bool(account.get("payouts_enabled")),
    }
