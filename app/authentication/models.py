"""
Identity models.

Patients, doctors and administrators all log in as a User (email +
password, JWT for the API). Administrators are ``is_staff`` users; a doctor
is a User linked from ``appointments.Doctor``.

Contact details live on Profile because the PayHere checkout form needs the
payer's name, phone and address, and the confirmation email greets the
patient by name. A Profile is created for every User by ``signals.py``.
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from core.models import BaseModel


class User(AbstractBaseUser, PermissionsMixin):
    """
    Login account identified by email.

    ``is_staff`` grants both the Django admin and the payment
    reconciliation endpoints.
    """

    email = models.EmailField(unique=True, help_text="Login email address")
    email_verified = models.BooleanField(default=False)
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive accounts cannot log in",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Can use the admin site and run payment reconciliation",
    )
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def _profile(self):
        try:
            return self.profile
        except Profile.DoesNotExist:
            return None

    def get_full_name(self):
        """Name from the profile, or the email when none is set."""
        profile = self._profile()
        return (profile and profile.full_name) or self.email

    def get_short_name(self):
        profile = self._profile()
        return (profile and profile.first_name) or self.email.split("@")[0]


class Profile(BaseModel):
    """
    Payer contact details sent with the checkout form.

    Fields:
        user: Owning account (also the primary key)
        first_name / last_name: Payer name
        phone: Payer phone number
        address / city / country: Billing address
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="profile",
    )
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, default="Sri Lanka")

    def __str__(self):
        return self.full_name or str(self.user)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
