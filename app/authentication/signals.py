"""
Profile creation for new users.

Checkout and the confirmation email read ``user.profile`` without checking
for it, so every User gets one as soon as it is inserted.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from toolkit.helpers import mask_email

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_profile(sender, instance, created, **kwargs):
    if not created:
        return

    from authentication.models import Profile

    Profile.objects.get_or_create(user=instance)
    logger.debug(f"Created profile for {mask_email(instance.email)}")
