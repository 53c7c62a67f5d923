"""
Manager for the email-identified User model.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Creates users by email.

    Name arguments are written to the Profile the post_save signal creates,
    so seeding a patient is a single call:

        User.objects.create_user(
            email="nimal@example.com",
            password="...",
            first_name="Nimal",
            last_name="Perera",
        )
    """

    def create_user(self, email, password=None, first_name="", last_name="", **extra_fields):
        """
        Create a user; without a password the account cannot log in.

        Raises:
            ValueError: If email is empty
        """
        if not email:
            raise ValueError("The Email field must be set")

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)

        if first_name or last_name:
            profile = user.profile
            profile.first_name = first_name
            profile.last_name = last_name
            profile.save(update_fields=["first_name", "last_name", "updated_at"])
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create an administrator; is_staff and is_superuser must stay True."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("email_verified", True)

        for flag in ("is_staff", "is_superuser"):
            if extra_fields.get(flag) is not True:
                raise ValueError(f"Superuser must have {flag}=True.")

        return self.create_user(email, password, **extra_fields)
