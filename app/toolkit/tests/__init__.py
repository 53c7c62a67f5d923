"""
Tests for toolkit app.

This package contains test modules for:
- test_helpers.py: Helper function tests
- test_email_service.py: EmailService tests
"""
