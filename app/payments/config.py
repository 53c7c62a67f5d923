"""
PayHere configuration object.

Merchant credentials and checkout limits are read from Django settings
once and passed explicitly to the adapter and services, so tests and
management commands can supply their own configuration.

Usage:
    from payments.config import PayHereConfig, get_payhere_config

    config = get_payhere_config()           # process-wide, loaded once
    config = PayHereConfig(                 # explicit, e.g. in tests
        merchant_id="1211149",
        merchant_secret="secret",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SANDBOX_CHECKOUT_URL = "https://sandbox.payhere.lk/pay/checkout"
LIVE_CHECKOUT_URL = "https://www.payhere.lk/pay/checkout"

LEGACY_ORDER_PREFIX = "APT_"


@dataclass(frozen=True)
class PayHereConfig:
    """
    Immutable PayHere merchant configuration.

    Attributes:
        merchant_id: Merchant id issued by PayHere
        merchant_secret: Domain-bound merchant secret (never logged)
        sandbox: Post checkouts to the sandbox host
        currency: Checkout currency
        min_amount / max_amount: Accepted checkout range (inclusive)
        order_prefix: Prefix of gateway order ids (<prefix><payment uuid>)
        client_url: Front end base URL for return/cancel redirects
        server_url: API base URL for the notify callback
    """

    merchant_id: str
    merchant_secret: str
    sandbox: bool = True
    currency: str = "LKR"
    min_amount: Decimal = Decimal("100")
    max_amount: Decimal = Decimal("1000000")
    order_prefix: str = "PAY-"
    client_url: str = "http://localhost:3000"
    server_url: str = "http://localhost:8000"

    @classmethod
    def from_settings(cls) -> PayHereConfig:
        """Build the configuration from PAYHERE_* and URL settings."""
        return cls(
            merchant_id=str(settings.PAYHERE_MERCHANT_ID),
            merchant_secret=str(settings.PAYHERE_MERCHANT_SECRET),
            sandbox=bool(settings.PAYHERE_SANDBOX),
            currency=settings.PAYHERE_CURRENCY,
            min_amount=Decimal(str(settings.PAYHERE_MIN_AMOUNT)),
            max_amount=Decimal(str(settings.PAYHERE_MAX_AMOUNT)),
            order_prefix=settings.PAYHERE_ORDER_PREFIX,
            client_url=settings.CLIENT_URL.rstrip("/"),
            server_url=settings.SERVER_URL.rstrip("/"),
        )

    @property
    def checkout_url(self) -> str:
        return SANDBOX_CHECKOUT_URL if self.sandbox else LIVE_CHECKOUT_URL

    @property
    def environment(self) -> str:
        return "sandbox" if self.sandbox else "live"

    def validate(self) -> None:
        """
        Raise ImproperlyConfigured when merchant credentials are missing.

        Called lazily by the code paths that sign or verify, so the rest of
        the application still boots without PayHere credentials.
        """
        missing = [
            name
            for name, value in (
                ("PAYHERE_MERCHANT_ID", self.merchant_id),
                ("PAYHERE_MERCHANT_SECRET", self.merchant_secret),
            )
            if not value
        ]
        if missing:
            raise ImproperlyConfigured(
                f"PayHere is not configured: {', '.join(missing)} must be set"
            )

    def __repr__(self) -> str:
        return (
            f"PayHereConfig(merchant_id={self.merchant_id!r}, "
            f"environment={self.environment!r}, currency={self.currency!r})"
        )


@lru_cache(maxsize=1)
def get_payhere_config() -> PayHereConfig:
    """Return the process-wide configuration, loaded from settings on first use."""
    return PayHereConfig.from_settings()
