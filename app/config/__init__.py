# =============================================================================
# Payments Service Project Configuration
# =============================================================================
# Settings, URL routing, the WSGI entry point and the Celery app.
#
# The Celery app is imported here so it is loaded whenever Django starts and
# the shared_task decorators in payments bind to it.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
