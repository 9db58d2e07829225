"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul des commissions, client Stripe et création des PaymentIntents.
"""

from .fees import (
    FeeBreakdown,
    application_fee,
    cancellation_fee,
    fee_breakdown,
    platform_fee,
    round_half_up,
)
from .stripe_client import StripeGateway
from .service import build_payment_intent_params, create_payment_intent

__all__ = [
    # fees
    "FeeBreakdown",
    "application_fee",
    "cancellation_fee",
    "fee_breakdown",
    "platform_fee",
    "round_half_up",
    # stripe
    "StripeGateway",
    # services
    "build_payment_intent_params",
    "create_payment_intent",
]
