"""
WSGI entry point (gunicorn ``config.wsgi:application``).

The PayHere notify URL is served by this process; Celery workers load
settings through ``config.celery`` instead.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
