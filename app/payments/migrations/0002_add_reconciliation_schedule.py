"""
Add celery-beat schedules for payment reconciliation and callback retries.

This migration creates the periodic tasks for:
- reconcile_stale_transactions, every 10 minutes: polls PhonePe for
  transactions stuck in INITIATED or PENDING
- retry_failed_webhooks, every 5 minutes: re-queues callbacks that
  failed or were never queued
- cleanup_stuck_webhooks, every 30 minutes: resets callbacks stuck in
  PROCESSING after a worker crash
"""

from django.db import migrations

PERIODIC_TASKS = [
    {
        "name": "Reconcile Stale PhonePe Transactions",
        "task": "payments.workers.reconciliation_worker.reconcile_stale_transactions",
        "every": 10,
        "description": (
            "Checks PhonePe status for transactions stuck in INITIATED or "
            "PENDING and applies the reported state."
        ),
    },
    {
        "name": "Retry Failed PhonePe Callbacks",
        "task": "payments.tasks.retry_failed_webhooks",
        "every": 5,
        "description": "Re-queues failed and never-queued PhonePe callbacks.",
    },
    {
        "name": "Reset Stuck PhonePe Callbacks",
        "task": "payments.tasks.cleanup_stuck_webhooks",
        "every": 30,
        "description": "Resets callbacks left in PROCESSING so they can be retried.",
    },
]


def create_periodic_tasks(apps, schema_editor):
    """Create the periodic tasks."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for spec in PERIODIC_TASKS:
        schedule, _ = IntervalSchedule.objects.get_or_create(
            every=spec["every"],
            period="minutes",
        )
        PeriodicTask.objects.get_or_create(
            name=spec["name"],
            defaults={
                "task": spec["task"],
                "interval": schedule,
                "enabled": True,
                "description": spec["description"],
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name__in=[spec["name"] for spec in PERIODIC_TASKS],
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
