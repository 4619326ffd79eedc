from django.db import models
from django.utils.translation import gettext_lazy as _

from accounts.models import Account


class Reminder(models.Model):
    """
    An email nudge scheduled by the user. The sweep in celery_tasks sends
    due reminders and flips them to `sent` once the mail backend accepts.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        SENT = 'sent', _('Sent')

    account = models.ForeignKey(
        Account,
        on_delete=models.CASCADE,
        related_name='reminders',
        verbose_name=_("account")
    )
    # Copied at creation so the sweep needs no join
    user_email = models.EmailField(verbose_name=_("recipient"))
    message = models.CharField(max_length=500, verbose_name=_("message"))
    scheduled_time = models.DateTimeField(verbose_name=_("scheduled time"))

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        verbose_name=_("status")
    )
    attempts = models.PositiveSmallIntegerField(default=0, verbose_name=_("delivery attempts"))
    sent_at = models.DateTimeField(null=True, blank=True, verbose_name=_("sent at"))
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("Reminder")
        verbose_name_plural = _("Reminders")
        ordering = ['scheduled_time', 'id']
        indexes = [
            models.Index(fields=['status', 'scheduled_time'], name='reminder_due_idx'),
        ]

    def __str__(self):
        return f"Reminder for {self.user_email} at {self.scheduled_time:%Y-%m-%d %H:%M}"
