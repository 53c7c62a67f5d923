"""
PayHere adapter for checkout signing and notification verification.

PayHere signs with uppercase hex MD5 over concatenated fields, using the
uppercase MD5 of the merchant secret as the last component:

    checkout:      MD5(merchant_id + order_id + amount + currency + MD5(secret))
    notification:  MD5(merchant_id + order_id + amount + currency
                       + status_code + MD5(secret))

``amount`` is always formatted with exactly two decimals ("1500.00");
PayHere rejects checkouts whose hash was computed over any other form.

Usage:
    from payments.adapters import PayHereAdapter
    from payments.config import get_payhere_config

    adapter = PayHereAdapter(get_payhere_config())
    checkout_hash = adapter.generate_checkout_hash(order_id, "1500", "LKR")
    is_authentic = adapter.verify_notification(notification)
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from payments.exceptions import PaymentValidationError

if TYPE_CHECKING:
    from payments.config import PayHereConfig
    from payments.types import GatewayNotification

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _md5_upper(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest().upper()


def format_amount(amount) -> str:
    """
    Format an amount the way PayHere hashes it.

    Args:
        amount: Decimal, int, float or numeric string

    Returns:
        Two-decimal string, rounded half up ("1500" -> "1500.00")

    Raises:
        PaymentValidationError: If amount is not a finite number
    """
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise PaymentValidationError(
            "Amount must be a number",
            details={"amount": str(amount)},
        )
    if not value.is_finite():
        raise PaymentValidationError(
            "Amount must be a number",
            details={"amount": str(amount)},
        )
    return str(value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


class PayHereAdapter:
    """
    Signs checkouts and verifies notifications for one merchant.

    The adapter holds no state beyond its configuration and the hashed
    secret, and has no side effects.

    Args:
        config: Merchant configuration (credentials are validated on
                first use)
    """

    def __init__(self, config: PayHereConfig) -> None:
        self.config = config
        self._hashed_secret: str | None = None

    @property
    def checkout_url(self) -> str:
        """Sandbox or live checkout URL for the configured merchant."""
        return self.config.checkout_url

    def format_amount(self, amount) -> str:
        return format_amount(amount)

    def hashed_secret(self) -> str:
        """UPPER(MD5(merchant_secret)), computed once per adapter."""
        if self._hashed_secret is None:
            self.config.validate()
            self._hashed_secret = _md5_upper(self.config.merchant_secret)
        return self._hashed_secret

    def generate_checkout_hash(self, order_id: str, amount, currency: str) -> str:
        """
        Hash embedded in the checkout form posted to PayHere.

        Args:
            order_id: Gateway order id
            amount: Checkout amount (normalised to two decimals)
            currency: Checkout currency

        Returns:
            Uppercase hex MD5 signature
        """
        return _md5_upper(
            f"{self.config.merchant_id}{order_id}{format_amount(amount)}"
            f"{currency}{self.hashed_secret()}"
        )

    def generate_notification_hash(
        self,
        merchant_id: str,
        order_id: str,
        amount,
        currency: str,
        status_code: str,
    ) -> str:
        """Expected md5sig of a notification with the given fields."""
        return _md5_upper(
            f"{merchant_id}{order_id}{format_amount(amount)}"
            f"{currency}{status_code}{self.hashed_secret()}"
        )

    def verify_notification(self, notification: GatewayNotification) -> bool:
        """
        Check that a notification was issued by PayHere for this merchant.

        The merchant id is compared first; a mismatch is rejected without
        computing any digest. All signed fields must be present.

        Returns:
            True only if the merchant matches and the signature is valid
        """
        if not self.is_own_merchant(notification.merchant_id):
            return False

        signed_fields = (
            notification.merchant_id,
            notification.order_id,
            notification.amount,
            notification.currency,
            notification.status_code,
            notification.signature,
        )
        if not all(str(value).strip() for value in signed_fields):
            return False

        try:
            expected = self.generate_notification_hash(
                notification.merchant_id,
                notification.order_id,
                notification.amount,
                notification.currency,
                notification.status_code,
            )
        except PaymentValidationError:
            logger.warning(
                "Notification amount is not numeric",
                extra={"order_id": notification.order_id},
            )
            return False

        return hmac.compare_digest(
            expected.encode("utf-8"), notification.signature.strip().encode("utf-8")
        )

    def is_own_merchant(self, merchant_id: str) -> bool:
        return str(merchant_id).strip() == str(self.config.merchant_id)
