# reminders/celery_tasks.py

import logging
from typing import Dict

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.db.models import F
from django.utils import timezone

from .models import Reminder

# Configure logging for background worker monitoring
logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Productivity Reminder"
SWEEP_BATCH_SIZE = 100


def _deliver(reminder: Reminder) -> bool:
    """
    Send one reminder and mark it sent only after the mail backend accepted it.

    A failed send leaves the reminder pending so the next sweep retries it.
    """
    try:
        send_mail(
            subject=REMINDER_SUBJECT,
            message=f"Reminder: {reminder.message}",
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[reminder.user_email],
            fail_silently=False,
        )
    except Exception as exc:
        Reminder.objects.filter(pk=reminder.pk).update(attempts=F('attempts') + 1)
        logger.error(f"Reminder {reminder.pk} delivery to {reminder.user_email} failed: {exc}")
        return False

    marked = Reminder.objects.filter(
        pk=reminder.pk, status=Reminder.Status.PENDING
    ).update(
        status=Reminder.Status.SENT,
        sent_at=timezone.now(),
        attempts=F('attempts') + 1,
    )
    if marked:
        logger.info(f"Reminder {reminder.pk} sent to {reminder.user_email}")
    return bool(marked)


@shared_task(
    bind=True,
    ignore_result=True,
    time_limit=55,       # Finish before the next minute tick
    soft_time_limit=50
)
def dispatch_due_reminders(self) -> Dict[str, int]:
    """
    Periodic sweep (every minute via beat): deliver pending reminders
    whose scheduled time has passed. At-least-once; no retry beyond the
    next tick.
    """
    now = timezone.now()
    due = list(
        Reminder.objects.filter(
            status=Reminder.Status.PENDING,
            scheduled_time__lte=now,
        ).order_by('scheduled_time', 'id')[:SWEEP_BATCH_SIZE]
    )
    if not due:
        return {"due": 0, "sent": 0, "failed": 0}

    logger.info(f"Reminder sweep: {len(due)} due")
    sent = sum(1 for reminder in due if _deliver(reminder))
    failed = len(due) - sent
    if failed:
        logger.warning(f"Reminder sweep: {failed} reminder(s) left pending for the next tick")

    return {"due": len(due), "sent": sent, "failed": failed}
