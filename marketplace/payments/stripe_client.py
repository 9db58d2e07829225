"""
Adaptateur Stripe: centralise les appels au SDK.

StripeGateway est construit une fois au démarrage avec la clé secrète et injecté
dans les handlers. La clé est passée à chaque appel (api_key=...) plutôt que
posée sur le module stripe, pour ne pas partager d'état global entre requêtes.
Les erreurs du SDK (stripe.StripeError) sont converties en UpstreamFailure.
"""
import logging
from typing import Any, Dict, Optional

import stripe

from marketplace.errors import NotFound, UpstreamFailure

# module marketplace.payments.stripe_client
logger = logging.getLogger(__name__)


def _to_dict(obj: Any) -> Dict[str, Any]:
    """Convertit un StripeObject (ou dict) en dict récursif."""
    if obj is None:
        return {}
    if hasattr(obj, "to_dict_recursive"):
        return obj.to_dict_recursive()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def _upstream(action: str, e: "stripe.StripeError") -> UpstreamFailure:
    message = getattr(e, "user_message", None) or str(e) or f"Stripe {action} failed"
    return UpstreamFailure(message, status_code=500, detail=getattr(e, "json_body", None))


class StripeGateway:
    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key

    def _options(self, idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        options: Dict[str, Any] = {"api_key": self.api_key}
        if idempotency_key:
            options["idempotency_key"] = idempotency_key
        return options

    def create_payment_intent(self, params: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Crée un PaymentIntent.
        - params: amount, currency, automatic_payment_methods, (application_fee_amount, transfer_data, metadata)
        Retour: dict incluant "id" et "client_secret"
        """
        try:
            intent = stripe.PaymentIntent.create(**self._options(idempotency_key), **params)
        except stripe.StripeError as e:
            logger.exception("stripe.PaymentIntent.create failed amount=%s", params.get("amount"))
            raise _upstream("payment intent", e)
        return _to_dict(intent)

    def retrieve_payment_intent(self, payment_intent_id: str) -> Dict[str, Any]:
        """
        Lit un PaymentIntent avec latest_charge expandé (montant de la charge inclus).
        - NotFound si Stripe ne connaît pas l'identifiant.
        """
        try:
            intent = stripe.PaymentIntent.retrieve(
                payment_intent_id, api_key=self.api_key, expand=["latest_charge"]
            )
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing":
                raise NotFound(f"Payment intent not found: {payment_intent_id}")
            logger.exception("stripe.PaymentIntent.retrieve failed id=%s", payment_intent_id)
            raise _upstream("payment intent lookup", e)
        except stripe.StripeError as e:
            logger.exception("stripe.PaymentIntent.retrieve failed id=%s", payment_intent_id)
            raise _upstream("payment intent lookup", e)
        return _to_dict(intent)

    def create_refund(
        self,
        *,
        charge_id: str,
        amount: int,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            refund = stripe.Refund.create(
                **self._options(idempotency_key),
                charge=charge_id,
                amount=amount,
                reason="requested_by_customer",
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.exception("stripe.Refund.create failed charge=%s amount=%s", charge_id, amount)
            raise _upstream("refund", e)
        return _to_dict(refund)

    def create_express_account(self, *, email: str, country: str) -> Dict[str, Any]:
        """
        Crée un compte Connect Express pour un vendeur particulier.
        - capabilities: card_payments + transfers
        """
        try:
            account = stripe.Account.create(
                api_key=self.api_key,
                type="express",
                country=country,
                email=email,
                capabilities={
                    "card_payments": {"requested": True},
                    "transfers": {"requested": True},
                },
                business_type="individual",
            )
        except stripe.StripeError as e:
            logger.exception("stripe.Account.create failed")
            raise _upstream("account creation", e)
        return _to_dict(account)

    def retrieve_account(self, account_id: str) -> Dict[str, Any]:
        try:
            account = stripe.Account.retrieve(account_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.exception("stripe.Account.retrieve failed account=%s", account_id)
            raise _upstream("account lookup", e)
        return _to_dict(account)

    def create_onboarding_link(self, *, account_id: str, return_url: str, refresh_url: str) -> Dict[str, Any]:
        try:
            link = stripe.AccountLink.create(
                api_key=self.api_key,
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )
        except stripe.StripeError as e:
            logger.exception("stripe.AccountLink.create failed account=%s", account_id)
            raise _upstream("onboarding link", e)
        return _to_dict(link)
