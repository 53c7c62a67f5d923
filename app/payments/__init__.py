"""
Payments app for PayHere checkout and payment reconciliation.

This app handles:
- Checkout initiation (pending Payment + signed gateway form)
- PayHere notification verification and status transitions
- Best-effort appointment confirmation emails
- Administrative repair of appointments stuck awaiting payment

Related apps:
    - appointments: Appointment confirmed when its payment completes
    - toolkit: EmailService used for confirmation emails

Usage:
    from payments.services import PaymentReconciliationService

    outcome = PaymentReconciliationService.process_notification(notification)
"""
