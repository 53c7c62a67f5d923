"""
Payment admin configuration.

Payments are read-only in the admin: status only changes through
gateway notifications or the "Force-complete" action, which runs the
same override as the reconciliation endpoints.
"""

from django.contrib import admin, messages

from core.exceptions import BaseApplicationError
from payments.models import Payment
from payments.services import ManualReconciliationService
from payments.state_machines import PaymentStatus


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Provides visibility into gateway outcomes and administrative overrides.
    """

    list_display = [
        "id",
        "patient",
        "doctor",
        "amount_display",
        "status",
        "gateway_reference",
        "admin_override",
        "paid_at",
        "created_at",
    ]
    list_filter = ["status", "currency", "payment_method"]
    search_fields = ["id", "gateway_reference", "patient__email", "appointment__id"]
    readonly_fields = [
        "id",
        "patient",
        "doctor",
        "appointment",
        "amount",
        "currency",
        "status",
        "gateway_reference",
        "gateway_response",
        "payment_method",
        "paid_at",
        "status_changed_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    actions = ["force_complete"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "patient", "doctor", "appointment"),
            },
        ),
        (
            "Amount",
            {
                "fields": ("amount", "currency"),
            },
        ),
        (
            "Gateway",
            {
                "fields": (
                    "status",
                    "gateway_reference",
                    "payment_method",
                    "paid_at",
                    "status_changed_at",
                ),
            },
        ),
        (
            "Last Gateway Response",
            {
                "fields": ("gateway_response",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def amount_display(self, obj: Payment) -> str:
        """Display the amount with its currency."""
        return f"{obj.amount:.2f} {obj.currency}"

    amount_display.short_description = "Amount"

    @admin.display(boolean=True, description="Override")
    def admin_override(self, obj: Payment) -> bool:
        return obj.is_admin_override

    @admin.action(description="Force-complete selected payments")
    def force_complete(self, request, queryset):
        """Administrative override for payments whose notification never arrived."""
        fixed = 0
        failed = 0
        for payment in queryset.exclude(status=PaymentStatus.COMPLETED):
            if payment.appointment_id is None:
                failed += 1
                continue
            try:
                ManualReconciliationService.fix_one(
                    payment.appointment_id,
                    performed_by=request.user,
                )
            except BaseApplicationError as e:
                failed += 1
                self.message_user(
                    request,
                    f"Payment {payment.id}: {e.message}",
                    level=messages.ERROR,
                )
            else:
                fixed += 1

        self.message_user(request, f"Force-completed {fixed} payments ({failed} failed).")

    def has_add_permission(self, request) -> bool:
        """Payments are created by checkout only."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payments (audit trail)."""
        return False
