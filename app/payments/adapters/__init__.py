"""
Payment adapters for external services.

All PayHere signing and signature verification goes through PayHereAdapter,
so the checkout hash and the notification check share one amount
normalisation.

Usage:
    from payments.adapters import PayHereAdapter

    adapter = PayHereAdapter(get_payhere_config())
    if not adapter.verify_notification(notification):
        ...
"""

from payments.adapters.payhere import PayHereAdapter, format_amount

__all__ = [
    "PayHereAdapter",
    "format_amount",
]
