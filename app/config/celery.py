"""
Celery application.

Workers run the side effects of a payment confirmation, currently the
appointment confirmation email, outside the gateway request. Redis is
both broker and result backend (``CELERY_*`` settings).

    celery -A config worker -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("appointments")
app.config_from_object("django.conf:settings", namespace="CELERY")
# Picks up payments/tasks.py
app.autodiscover_tasks()
