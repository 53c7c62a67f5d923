"""
factory_boy factories for accounts.
"""

import factory

from authentication.models import User


class UserFactory(factory.django.DjangoModelFactory):
    """
    Patient account with a named profile.

    Created through UserManager.create_user(), which hashes the password
    and writes the names to the signal-created profile.
    """

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"patient{n}@example.com")
    email_verified = True
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        password = kwargs.pop("password", "Sandbox-Pass-1")
        return model_class.objects.create_user(kwargs.pop("email"), password, **kwargs)


class StaffUserFactory(UserFactory):
    """Administrator allowed to run payment reconciliation."""

    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    is_staff = True
