from django.db import models
from django.utils.translation import gettext_lazy as _

from .gamification import DEFAULT_DAILY_GOAL, goal_reached, level_progress
from .managers import AccountManager


class Account(models.Model):
    """
    Per-user ledger of cumulative XP.

    The identity is issued by the external provider; this table only
    stores it. `total_points` is mutated exclusively by task completion
    and reversal (see worklog.services), always through atomic
    expressions at the database level.
    """
    external_id = models.CharField(
        _('external identity'),
        max_length=255,
        unique=True,
        help_text=_('Identifier issued by the identity provider.'),
    )
    email = models.EmailField(_('email address'), unique=True)
    display_name = models.CharField(_('display name'), max_length=150, blank=True, default='')

    total_points = models.PositiveIntegerField(_('total points'), default=0)
    daily_xp = models.PositiveIntegerField(
        _('daily XP'),
        default=0,
        help_text=_('XP earned on the UTC date of last_log_date.'),
    )
    daily_goal = models.PositiveIntegerField(_('daily goal'), default=DEFAULT_DAILY_GOAL)
    streak = models.PositiveIntegerField(_('streak'), default=0)
    last_log_date = models.DateTimeField(_('last activity'), null=True, blank=True)

    # Cached weekly coach result, overwritten on regeneration
    last_insight_feedback = models.TextField(blank=True, default='')
    last_insight_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    last_insight_generated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(_('created at'), auto_now_add=True)

    objects = AccountManager()

    class Meta:
        verbose_name = _('account')
        verbose_name_plural = _('accounts')
        ordering = ['created_at']

    def __str__(self):
        return self.email

    @property
    def progress(self):
        return level_progress(self.total_points)

    @property
    def daily_goal_reached(self):
        return goal_reached(self.daily_xp, self.daily_goal)

    @property
    def last_insight(self):
        if self.last_insight_generated_at is None:
            return None
        return {
            'feedback': self.last_insight_feedback,
            'rating': self.last_insight_rating,
            'generatedAt': self.last_insight_generated_at,
        }
