"""
Authentication application.

Provides the email-based User model and the Profile holding the contact
details used by checkout and confirmation emails.

Usage:
    from authentication.models import User, Profile
"""
