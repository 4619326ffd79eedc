from django.db import models
from django.utils.translation import gettext_lazy as _

from accounts.models import Account


class TaskLog(models.Model):
    """
    A single logged work session.

    Points are computed once at creation ("potential points") and only
    reach the owner's ledger when the entry is completed.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        COMPLETED = 'completed', _('Completed')

    account = models.ForeignKey(
        Account,
        on_delete=models.CASCADE,
        related_name='task_logs',
        verbose_name=_("account")
    )

    task_description = models.TextField(verbose_name=_("task description"))
    duration = models.PositiveIntegerField(
        default=0,
        verbose_name=_("duration"),
        help_text=_("Time spent, in minutes.")
    )
    # Display order is kept; scoring ignores it
    tags = models.JSONField(default=list, blank=True, verbose_name=_("tags"))

    points = models.PositiveIntegerField(
        default=0,
        verbose_name=_("points"),
        help_text=_("XP awarded on completion, computed at creation time.")
    )
    ai_feedback = models.TextField(blank=True, default='', verbose_name=_("AI feedback"))
    scoring_method = models.CharField(
        max_length=20,
        blank=True,
        default='',
        help_text=_("Which layer produced the points: ai_scored, cached or fallback.")
    )

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
        verbose_name=_("status")
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name=_("completed at"))

    class Meta:
        verbose_name = _("Task log")
        verbose_name_plural = _("Task logs")
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['account', 'status'], name='tasklog_account_status_idx'),
        ]

    def __str__(self):
        return f"Log for {self.account.email}: {self.task_description[:40]}"

    @property
    def is_completed(self):
        return self.status == self.Status.COMPLETED
