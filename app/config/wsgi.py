"""
WSGI config for the job-board chat backend.

Serves the REST API only. WebSocket chat needs the ASGI entry point
(config.asgi), so prefer that in deployment.

https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
