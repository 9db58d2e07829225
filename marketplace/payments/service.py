"""
Cas d'usage 'payments': construit et crée le PaymentIntent (split marketplace).
"""
import logging
from typing import Any, Dict, Optional

from marketplace.config import DEFAULT_CURRENCY
from marketplace.errors import InvalidArgument
from marketplace.utils.requests import parse_amount, optional_str
from . import fees

logger = logging.getLogger(__name__)

# module marketplace.payments.service
def build_payment_intent_params(
    *,
    amount: Optional[int],
    product_amount: int = 0,
    shipping_amount: int = 0,
    tax_amount: int = 0,
    currency: Optional[str] = None,
    seller_account_id: Optional[str] = None,
    product_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paramètres de stripe.PaymentIntent.create.
    - amount (total, centimes) obligatoire et > 0, sinon InvalidArgument.
    - Si seller_account_id ET product_amount > 0: destination charge
      (application_fee_amount + transfer_data.destination) et détail des montants en metadata.
    - Sinon: aucun champ de split, tout revient à la plateforme.
    """
    if amount is None or amount <= 0:
        raise InvalidArgument("Invalid amount")
    currency = (currency or DEFAULT_CURRENCY).strip().lower()
    if len(currency) != 3 or not currency.isalpha():
        raise InvalidArgument("Invalid currency")

    params: Dict[str, Any] = {
        "amount": amount,
        "currency": currency,
        "automatic_payment_methods": {"enabled": True},
    }
    metadata: Dict[str, str] = {}
    if product_id:
        metadata["productId"] = product_id

    if seller_account_id and product_amount > 0:
        breakdown = fees.fee_breakdown(amount, product_amount, shipping_amount, tax_amount)
        params["application_fee_amount"] = breakdown.application_fee
        params["transfer_data"] = {"destination": seller_account_id}
        metadata.update(breakdown.as_metadata())
        metadata["sellerStripeAccountId"] = seller_account_id

    if metadata:
        params["metadata"] = metadata
    return params


def create_payment_intent(gateway, body: Dict[str, Any], idempotency_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Valide le body, puis crée le PaymentIntent chez Stripe.
    - Entrée: {amount, productAmount?, shippingAmount?, taxAmount?, currency?, sellerStripeAccountId?, productId?}
    - Retour: {clientSecret, paymentIntentId} tels que renvoyés par Stripe
    - Aucune relance: un retry sans idempotency_key pourrait débiter deux fois
    """
    try:
        amount = parse_amount(body.get("amount"), "amount", default=None)
    except InvalidArgument:
        raise InvalidArgument("Invalid amount")
    params = build_payment_intent_params(
        amount=amount,
        product_amount=parse_amount(body.get("productAmount"), "productAmount"),
        shipping_amount=parse_amount(body.get("shippingAmount"), "shippingAmount"),
        tax_amount=parse_amount(body.get("taxAmount"), "taxAmount"),
        currency=optional_str(body, "currency"),
        seller_account_id=optional_str(body, "sellerStripeAccountId"),
        product_id=optional_str(body, "productId"),
    )
    intent = gateway.create_payment_intent(params, idempotency_key=idempotency_key)
    logger.info(
        "payments.create_payment_intent id=%s amount=%s split=%s",
        intent.get("id"), params["amount"], "transfer_data" in params,
    )
    return {"clientSecret": intent.get("client_secret"), "paymentIntentId": intent.get("id")}
