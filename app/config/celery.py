"""
Celery configuration for the job-board chat backend.

Celery runs work that originates outside a request or WebSocket session,
such as pushing notifications to a user's private chat room when another
subsystem (applications, job postings) changes state.

Redis is both the message broker and result backend. Tasks are
auto-discovered from every installed app's tasks.py.

Usage:
    from chat.tasks import notify_user

    notify_user.delay(user.id, "application.status_changed", {"status": "hired"})

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
