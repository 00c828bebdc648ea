"""
Celery configuration for the payments service.

Celery runs the work that must not block a request:
- Processing stored PhonePe callbacks (payments.tasks)
- Reconciling transactions whose status is unknown or stale
  (payments.workers.reconciliation_worker)
- Periodic retries and cleanup, scheduled through django-celery-beat

Redis is the default broker and result backend (CELERY_BROKER_URL,
CELERY_RESULT_BACKEND). Tasks are auto-discovered from installed apps;
payments.tasks re-exports the worker tasks so they are found too.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info --scheduler django_celery_beat.schedulers:DatabaseScheduler
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("payments_service")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
