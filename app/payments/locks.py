"""
Concurrency control utilities for payment operations.

Payments are updated under compare-and-set semantics: a write only
happens while the row still holds the status the caller loaded. Two
mechanisms provide this:

1. **FSM transitions** (Payment uses django-fsm's ConcurrentTransitionMixin)
   - save() after a transition filters the UPDATE on the loaded status
   - zero affected rows raises django_fsm.ConcurrentTransition

2. **Conditional updates** (compare_and_set)
   - for writes that keep the status, e.g. storing a "still pending"
     notification payload

Usage:
    from payments.locks import compare_and_set

    stored = compare_and_set(
        Payment,
        payment.pk,
        expected_status=PaymentStatus.PENDING,
        gateway_response=notification.raw,
    )
    if not stored:
        # Another delivery moved the payment on
        ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from django.utils import timezone

if TYPE_CHECKING:
    from typing import Any


def compare_and_set(
    model_class: type[models.Model],
    pk: Any,
    expected_status: str,
    status_field: str = "status",
    **updates: Any,
) -> bool:
    """
    Atomically apply ``updates`` only if the row still has ``expected_status``.

    Executes a single ``UPDATE ... WHERE pk = %s AND status = %s``; there is
    no read before the write, so concurrent callers cannot both succeed
    when one of them changes the status.

    Args:
        model_class: Model to update
        pk: Primary key of the row
        expected_status: Status the row must still have
        status_field: Name of the status column (default: "status")
        **updates: Column values to write

    Returns:
        True if the row was updated, False if its status had moved on
        (or the row does not exist)
    """
    if "updated_at" not in updates and any(
        f.name == "updated_at" for f in model_class._meta.get_fields()
    ):
        # QuerySet.update() bypasses auto_now
        updates["updated_at"] = timezone.now()

    rows = model_class.objects.filter(pk=pk, **{status_field: expected_status}).update(
        **updates
    )
    return rows == 1


__all__ = [
    "compare_and_set",
]
