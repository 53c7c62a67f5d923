"""
Toolkit: services shared by the domain apps.

    toolkit.services.EmailService   templated email delivery
    toolkit.helpers.mask_email      PII masking for log lines
"""
