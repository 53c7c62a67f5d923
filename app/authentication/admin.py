"""
Admin for accounts, with the payer contact details inline.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from authentication.models import Profile, User


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    fields = ("first_name", "last_name", "phone", "address", "city", "country")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """Django's user admin adapted to login by email."""

    inlines = (ProfileInline,)
    list_display = ("email", "is_staff", "is_active", "date_joined")
    list_filter = ("is_staff", "is_active")
    search_fields = ("email", "profile__first_name", "profile__last_name", "profile__phone")
    ordering = ("-date_joined",)
    readonly_fields = ("date_joined", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Access", {"fields": ("is_active", "is_staff", "is_superuser", "email_verified")}),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Activity", {"fields": ("date_joined", "last_login")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "password1", "password2")}),
    )
