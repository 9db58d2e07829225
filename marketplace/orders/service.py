"""
Cas d'usage 'orders': annulation d'une commande payée.

Étapes:
1) Résout le PaymentIntent vers sa charge (InvalidState si aucune charge)
2) Calcule frais d'annulation (5 %) et montant remboursé
3) Crée le remboursement partiel Stripe: seule étape dont l'échec annule tout
4) Actions compensatoires indépendantes, chacune avec son résultat:
   - void_label: annule l'étiquette Shippo si shippoTransactionId est fourni
   - relist_product: remet l'annonce en vente si productId est fourni
   Leurs échecs sont journalisés et rapportés dans la réponse, jamais levés.
"""
import logging
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from marketplace.errors import InvalidArgument, InvalidState
from marketplace.payments.fees import cancellation_fee
from marketplace.utils.requests import optional_str
from . import repository

# module marketplace.orders.service
logger = logging.getLogger(__name__)


@dataclass
class CompensationOutcome:
    action: str
    attempted: bool
    ok: bool = False
    error: Optional[str] = None


@dataclass
class CancellationResult:
    refund_id: str
    refund_amount: int
    cancellation_fee: int
    currency: str
    compensations: List[CompensationOutcome] = field(default_factory=list)

    @property
    def label_voided(self) -> bool:
        return any(c.action == "void_label" and c.ok for c in self.compensations)

    @property
    def message(self) -> str:
        cur = self.currency.upper()
        text = (
            f"Order cancelled: refunded {_major(self.refund_amount)} {cur}, "
            f"cancellation fee {_major(self.cancellation_fee)} {cur}"
        )
        failed = [c.action for c in self.compensations if c.attempted and not c.ok]
        if failed:
            text += f" (follow-up failed: {', '.join(failed)})"
        return text

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "refundId": self.refund_id,
            "refundAmount": self.refund_amount,
            "cancellationFee": self.cancellation_fee,
            "labelVoided": self.label_voided,
            "message": self.message,
            "compensations": [asdict(c) for c in self.compensations],
        }


def _major(amount: int) -> str:
    return f"{Decimal(amount) / Decimal(100):.2f}"

def resolve_charge(intent: Dict[str, Any]) -> Dict[str, Any]:
    """
    Retourne {"id", "amount"} de la charge associée au PaymentIntent.
    - latest_charge expandé (dict) ou simple identifiant (str)
    - InvalidState si aucune charge n'existe encore (paiement non capturé)
    """
    charge = intent.get("latest_charge")
    if not charge:
        raise InvalidState("No charge found for this payment")
    if isinstance(charge, dict):
        amount = charge.get("amount")
        if amount is None:
            amount = intent.get("amount_received") or intent.get("amount")
        return {"id": charge.get("id"), "amount": int(amount or 0)}
    amount = intent.get("amount_received") or intent.get("amount") or 0
    return {"id": str(charge), "amount": int(amount)}


def _void_label(shippo, transaction_id: Optional[str]) -> CompensationOutcome:
    if not transaction_id:
        return CompensationOutcome("void_label", attempted=False)
    if shippo is None:
        logger.error("orders.void_label skipped transaction=%s: Shippo non configuré", transaction_id)
        return CompensationOutcome("void_label", attempted=True, error="Shippo API key not configured")
    try:
        refund = shippo.refund_label(transaction_id)
        logger.info("orders.void_label transaction=%s status=%s", transaction_id, refund.get("status"))
        return CompensationOutcome("void_label", attempted=True, ok=True)
    except Exception as e:
        logger.exception("orders.void_label failed transaction=%s", transaction_id)
        return CompensationOutcome("void_label", attempted=True, error=str(e))


def _relist_product(db, product_id: Optional[str]) -> CompensationOutcome:
    if not product_id:
        return CompensationOutcome("relist_product", attempted=False)
    if db is None:
        logger.error("orders.relist_product skipped product=%s: base non configurée", product_id)
        return CompensationOutcome("relist_product", attempted=True, error="Database not configured")
    try:
        row = repository.relist_product(db, product_id)
    except Exception as e:
        logger.exception("orders.relist_product failed product=%s", product_id)
        return CompensationOutcome("relist_product", attempted=True, error=str(e))
    if row is None:
        logger.warning("orders.relist_product product=%s introuvable", product_id)
        return CompensationOutcome("relist_product", attempted=True, error="Product not found")
    return CompensationOutcome("relist_product", attempted=True, ok=True)


def cancel_order(
    gateway,
    shippo,
    db,
    body: Dict[str, Any],
    idempotency_key: Optional[str] = None,
) -> CancellationResult:
    """
    Annule une commande: remboursement partiel net des frais + compensations.
    - Entrée: {paymentIntentId, productId?, reason?, cancelledBy?, shippoTransactionId?}
    - idempotency_key: fourni par l'appelant, sinon dérivé du PaymentIntent
      (une annulation rejouée ne rembourse jamais deux fois)
    """
    payment_intent_id = optional_str(body, "paymentIntentId")
    if not payment_intent_id:
        raise InvalidArgument("Missing paymentIntentId")
    product_id = optional_str(body, "productId")
    reason = optional_str(body, "reason") or "not_specified"
    cancelled_by = optional_str(body, "cancelledBy") or "buyer"
    transaction_id = optional_str(body, "shippoTransactionId")

    intent = gateway.retrieve_payment_intent(payment_intent_id)
    charge = resolve_charge(intent)
    fee, refund_amount = cancellation_fee(charge["amount"])

    metadata = {
        "paymentIntentId": payment_intent_id,
        "originalAmount": str(charge["amount"]),
        "cancellationFee": str(fee),
        "cancelledBy": cancelled_by,
        "reason": reason,
    }
    if product_id:
        metadata["productId"] = product_id
    refund = gateway.create_refund(
        charge_id=charge["id"],
        amount=refund_amount,
        metadata=metadata,
        idempotency_key=idempotency_key or f"cancel-order-{payment_intent_id}",
    )
    logger.info(
        "orders.cancel_order intent=%s refund=%s amount=%s fee=%s by=%s",
        payment_intent_id, refund.get("id"), refund_amount, fee, cancelled_by,
    )

    compensations = [
        _void_label(shippo, transaction_id),
        _relist_product(db, product_id),
    ]
    return CancellationResult(
        refund_id=refund.get("id"),
        refund_amount=refund_amount,
        cancellation_fee=fee,
        currency=intent.get("currency") or "usd",
        compensations=compensations,
    )
