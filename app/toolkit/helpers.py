"""
Helpers for keeping personal data out of log output.
"""

from __future__ import annotations


def mask_email(email: str) -> str:
    """
    Hide the local part of an address: ``nimal@example.com`` -> ``n***@example.com``.

    Anything that is not an address masks to ``***``.
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    prefix = local[0] if len(local) > 1 else ""
    return f"{prefix}***@{domain}"
