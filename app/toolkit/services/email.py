"""
Templated email delivery.

A template name such as ``payments/appointment_confirmation`` is rendered
from ``<name>.txt`` (body) and ``<name>.html`` (HTML alternative). Either
file may be missing, not both.

Usage:
    from toolkit.services import EmailService

    delivered = EmailService.send(
        to=patient.email,
        subject="Your appointment is confirmed",
        template_name="payments/appointment_confirmation",
        context=context,
    )
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from toolkit.helpers import mask_email

logger = logging.getLogger(__name__)


def _render(template_name: str, suffix: str, context: dict) -> str | None:
    try:
        return render_to_string(f"{template_name}.{suffix}", context)
    except TemplateDoesNotExist:
        return None


class EmailService:
    """Sends templated emails through the configured EMAIL_BACKEND."""

    @staticmethod
    def send(
        to: str | list[str],
        subject: str,
        template_name: str,
        context: dict,
        from_email: str | None = None,
    ) -> bool:
        """
        Render and send one email.

        Returns False when the mail backend refuses the message; the
        failure is logged. A template that does not exist at all raises
        TemplateDoesNotExist.
        """
        recipients = [to] if isinstance(to, str) else list(to)

        html_body = _render(template_name, "html", context)
        text_body = _render(template_name, "txt", context)
        if text_body is None:
            if html_body is None:
                raise TemplateDoesNotExist(template_name)
            text_body = strip_tags(html_body)

        message = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=from_email or settings.DEFAULT_FROM_EMAIL,
            to=recipients,
        )
        if html_body:
            message.attach_alternative(html_body, "text/html")

        masked = ", ".join(mask_email(address) for address in recipients)
        try:
            message.send(fail_silently=False)
        except (SMTPException, OSError) as e:
            logger.error(
                f"Email to {masked} failed: {e}",
                extra={"template_name": template_name},
            )
            return False

        logger.info(f"Email sent to {masked}: {subject}", extra={"template_name": template_name})
        return True
