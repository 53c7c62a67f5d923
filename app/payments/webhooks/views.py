"""
Webhook endpoint view for PayHere.

This module provides the HTTP endpoint for receiving PayHere payment
notifications. The view:
1. Parses the form payload into a GatewayNotification
2. Hands it to PaymentReconciliationService (verify, guard, transition)
3. Answers the gateway in plain text

Processing is synchronous: the notification is small and the only slow
side effect (the confirmation email) is already queued after commit.

Usage:
    # In urls.py
    from payments.webhooks.views import payhere_notify

    urlpatterns = [
        path("notify/", payhere_notify, name="payhere_notify"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.helpers import get_client_ip
from payments.exceptions import NotificationRejectedError, PaymentNotFoundError
from payments.serializers import PayHereNotificationSerializer
from payments.services import PaymentReconciliationService


logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def payhere_notify(request: HttpRequest) -> HttpResponse:
    """
    Receive a PayHere payment notification.

    Security:
    - md5sig verification against the merchant secret prevents spoofing
    - Merchant id must be ours
    - Amount and currency must match the stored payment
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - Redelivery of an applied outcome is acknowledged with 200 and
      changes nothing
    - Concurrent deliveries for one payment are serialised by the
      conditional status update; only one confirms the appointment

    Returns:
        HttpResponse (text/plain) with status:
        - 200 "OK": Accepted (applied, duplicate, pending or conflict)
        - 400: Missing fields, merchant mismatch, invalid hash, amount mismatch
        - 404: Order id does not resolve to a payment
        - 500: Unexpected failure (the gateway retries)
    """
    client_ip = get_client_ip(request)

    try:
        notification = PayHereNotificationSerializer(data=request.POST).to_notification()
        outcome = PaymentReconciliationService.process_notification(notification)
    except NotificationRejectedError as e:
        logger.warning(
            f"PayHere notification rejected: {e.reason}",
            extra={
                "reason": e.reason,
                "order_id": request.POST.get("order_id"),
                "client_ip": client_ip,
            },
        )
        return _plain(e.reason, status=400)
    except PaymentNotFoundError:
        return _plain("Payment not found", status=404)
    except Exception as e:
        logger.error(
            f"Unexpected error processing PayHere notification: {type(e).__name__}",
            extra={"order_id": request.POST.get("order_id"), "client_ip": client_ip},
            exc_info=True,
        )
        return _plain("Error processing payment", status=500)

    logger.info(
        f"PayHere notification acknowledged: {outcome.status}",
        extra={
            "order_id": notification.order_id,
            "payment_id": str(outcome.payment.id),
            "status": outcome.status,
            "changed": outcome.changed,
            "duplicate": outcome.duplicate,
            "conflict": outcome.conflict,
        },
    )
    return _plain("OK", status=200)


def _plain(body: str, status: int) -> HttpResponse:
    return HttpResponse(body, status=status, content_type="text/plain")
