"""Celery app for pip-alert workers.

Workers run push delivery for new incidents (apps.notify.tasks), queued
alarm ingestion (apps.incidents.tasks) and, under beat, the retention sweep
that deletes incidents past their TTL.

    celery -A config worker -l info
    celery -A config beat -l info

Broker, result backend and the beat schedule are the CELERY_* settings in
config/settings.py.
"""

from __future__ import annotations

import os

from celery import Celery

from config.env import load_env

load_env()

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("pip-alert")

# CELERY_TASK_ALWAYS_EAGER becomes task_always_eager, and so on.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
