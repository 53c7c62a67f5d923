"""
Data types passed between the payment reconciliation layers.

GatewayNotification is produced by PayHereNotificationSerializer and is
the only form in which notification data reaches the services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import uuid

    from payments.models import Payment


@dataclass(frozen=True)
class GatewayNotification:
    """
    A parsed PayHere payment notification.

    Attributes:
        merchant_id: Merchant id the gateway signed for
        order_id: Order id sent at checkout (embeds the Payment id)
        amount: Amount as posted (payhere_amount), not yet normalised
        currency: Currency as posted (payhere_currency)
        status_code: Gateway status code as posted
        signature: Uppercase MD5 signature (md5sig)
        gateway_reference: PayHere payment id
        status_message: Free-text gateway message
        method: Payment method (VISA, MASTER, ...)
        raw: Complete form payload, persisted for audit
    """

    merchant_id: str
    order_id: str
    amount: str
    currency: str
    status_code: str
    signature: str
    gateway_reference: str = ""
    status_message: str = ""
    method: str = ""
    card_holder_name: str = ""
    card_no: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class ReconciliationOutcome:
    """
    Result of applying one notification to a Payment.

    Attributes:
        payment: The resolved payment (state after processing)
        previous_status: Status loaded before processing
        status: Status after processing
        changed: A transition was committed by this delivery
        duplicate: Redelivery of an outcome already applied
        conflict: Stored terminal status differs from the notified one
        appointment_confirmed: The linked appointment was confirmed
    """

    payment: Payment
    previous_status: str
    status: str
    changed: bool = False
    duplicate: bool = False
    conflict: bool = False
    appointment_confirmed: bool = False


@dataclass
class FixResult:
    """Outcome of repairing one appointment in a bulk fix."""

    appointment_id: uuid.UUID
    success: bool
    payment_id: uuid.UUID | None = None
    reference: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "appointmentId": str(self.appointment_id),
            "paymentId": str(self.payment_id) if self.payment_id else None,
            "status": "fixed" if self.success else "error",
            "reference": self.reference,
            "error": self.error,
        }


@dataclass
class FixAllReport:
    """
    Summary of a bulk fix run.

    ``total_pending`` counts every appointment awaiting payment, including
    the ones younger than the minimum pending age that were not attempted.
    """

    attempted: int = 0
    fixed: int = 0
    failed: int = 0
    total_pending: int = 0
    results: list[FixResult] = field(default_factory=list)


@dataclass
class CheckoutData:
    """Signed checkout form and the URL the front end posts it to."""

    payment_id: uuid.UUID
    order_id: str
    checkout_url: str
    environment: str
    payment_data: dict[str, str] = field(default_factory=dict)
