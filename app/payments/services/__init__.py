"""
Payment service layer.

Usage:
    from payments.services import (
        CheckoutService,
        ManualReconciliationService,
        PaymentReconciliationService,
    )
"""

from payments.services.checkout import CheckoutService
from payments.services.manual import ManualReconciliationService, generate_reference
from payments.services.reconciliation import (
    GATEWAY_STATUS_MAP,
    PaymentReconciliationService,
    map_gateway_status,
)

__all__ = [
    "CheckoutService",
    "GATEWAY_STATUS_MAP",
    "ManualReconciliationService",
    "PaymentReconciliationService",
    "generate_reference",
    "map_gateway_status",
]
