"""
Request helpers without domain knowledge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest


def get_client_ip(request: HttpRequest) -> str:
    """
    Best-effort caller address for log lines.

    Behind the load balancer the caller is the left-most X-Forwarded-For
    entry; without the header it is REMOTE_ADDR.

    Example:
        logger.info("Notification received", extra={"client_ip": get_client_ip(request)})
    """
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")
