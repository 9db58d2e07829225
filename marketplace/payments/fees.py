"""
Calcul des commissions marketplace (pur: pas de Stripe, pas de DB).

Tous les montants sont des entiers en unité mineure (centimes).
L'arrondi est « half-up » sur le centime, jamais l'arrondi bancaire de round().
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Tuple

from marketplace.config import PLATFORM_FEE_RATE, CANCELLATION_FEE_RATE

# module marketplace.payments.fees
def round_half_up(value: Decimal) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def platform_fee(product_amount: int) -> Tuple[int, int]:
    """
    Commission plateforme sur le prix produit.
    - platform_fee = round(product_amount × 0.10)
    - seller_receives = product_amount − platform_fee
    Retour: (platform_fee, seller_receives)
    """
    fee = round_half_up(Decimal(product_amount) * Decimal(PLATFORM_FEE_RATE))
    return fee, product_amount - fee


def application_fee(total_amount: int, seller_receives: int) -> int:
    """
    Montant retenu par la plateforme sur la transaction.
    Peut être négatif si l'appelant ne respecte pas total = produit + port + taxes (non validé).
    """
    return total_amount - seller_receives


def cancellation_fee(original_amount: int) -> Tuple[int, int]:
    """
    Frais d'annulation retenus sur un remboursement.
    - cancellation_fee = round(original_amount × 0.05)
    - refund_amount = original_amount − cancellation_fee
    Retour: (cancellation_fee, refund_amount)
    """
    fee = round_half_up(Decimal(original_amount) * Decimal(CANCELLATION_FEE_RATE))
    return fee, original_amount - fee


@dataclass(frozen=True)
class FeeBreakdown:
    total_amount: int
    product_amount: int
    shipping_amount: int
    tax_amount: int
    platform_fee: int
    seller_receives: int
    application_fee: int

    def as_metadata(self) -> Dict[str, str]:
        # Stripe n'accepte que des valeurs string en metadata
        return {
            "productAmount": str(self.product_amount),
            "shippingAmount": str(self.shipping_amount),
            "taxAmount": str(self.tax_amount),
            "platformFee": str(self.platform_fee),
            "sellerReceives": str(self.seller_receives),
        }


def fee_breakdown(total_amount: int, product_amount: int, shipping_amount: int = 0, tax_amount: int = 0) -> FeeBreakdown:
    fee, seller = platform_fee(product_amount)
    return FeeBreakdown(
        total_amount=total_amount,
        product_amount=product_amount,
        shipping_amount=shipping_amount,
        tax_amount=tax_amount,
        platform_fee=fee,
        seller_receives=seller,
        application_fee=application_fee(total_amount, seller),
    )
