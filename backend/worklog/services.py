# worklog/services.py
"""
Task log lifecycle and ledger reconciliation.

    pending --complete--> completed
    pending --delete--> (removed)
    completed --delete--> (removed, points reversed)

Invariant: an account's total_points equals the sum of points over its
completed entries still present (never below zero). Every mutation below
runs in one transaction, locks rows in the same order (task logs, then
accounts) and touches total_points only through database expressions.
"""

import datetime
import logging

from django.db import models, transaction
from django.db.models import F, Q, Sum, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from accounts.gamification import apply_award
from accounts.models import Account
from api.exceptions import InvalidState, NotFound

from .ai_engine import ScoringOrchestrator
from .models import TaskLog
from .validators import (
    validate_description,
    validate_duration,
    validate_id_set,
    validate_status_filter,
    validate_tags,
)

logger = logging.getLogger(__name__)

INSIGHT_WINDOW_DAYS = 7


def get_account(identity):
    account = Account.objects.filter(external_id=identity).first()
    if account is None:
        raise NotFound("User not found")
    return account


def _reverse_points(account_id, points):
    """Clamped decrement: total_points = max(total_points - points, 0)."""
    if points <= 0:
        return
    Account.objects.filter(pk=account_id).update(
        total_points=Greatest(
            F('total_points') - Value(points),
            Value(0),
            output_field=models.PositiveIntegerField(),
        )
    )


def create_task_log(identity, task_description, duration=0, tags=None, orchestrator=None):
    """
    Validate, score and persist a pending entry.

    Scoring cannot fail: the orchestrator falls back to deterministic
    rules whenever the oracle is unavailable.
    """
    task_description = validate_description(task_description)
    duration = validate_duration(duration)
    tags = validate_tags(tags)
    account = get_account(identity)

    orchestrator = orchestrator or ScoringOrchestrator()
    result = orchestrator.score_task(task_description, duration, tags)

    log = TaskLog.objects.create(
        account=account,
        task_description=task_description,
        duration=duration,
        tags=tags,
        points=max(0, int(result["score"])),
        ai_feedback=result.get("feedback") or "",
        scoring_method=result.get("scoring_method") or "",
    )
    logger.info(
        f"Task log {log.pk} created for account {account.pk}: "
        f"{log.points} pts via {log.scoring_method}"
    )
    return log


def list_task_logs(identity, status=None):
    status = validate_status_filter(status)
    account = get_account(identity)
    queryset = TaskLog.objects.filter(account=account)
    if status is not None:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-created_at', '-id')


def complete_task_log(log_id, now=None):
    """
    Mark an entry completed and award its points exactly once.

    Returns:
        (task_log, new_total_points)

    Raises:
        NotFound: no entry with this id.
        InvalidState: the entry is already completed.
    """
    now = now or timezone.now()

    with transaction.atomic():
        log = TaskLog.objects.select_for_update().filter(pk=log_id).first()
        if log is None:
            raise NotFound("Log not found")
        if log.status == TaskLog.Status.COMPLETED:
            raise InvalidState("Task already completed")

        account = Account.objects.select_for_update().get(pk=log.account_id)

        # Compare-and-set on status guards against a concurrent completion
        claimed = TaskLog.objects.filter(
            pk=log.pk, status=TaskLog.Status.PENDING
        ).update(status=TaskLog.Status.COMPLETED, completed_at=now)
        if claimed != 1:
            raise InvalidState("Task already completed")

        step = apply_award(
            daily_xp=account.daily_xp,
            streak=account.streak,
            last_log_date=account.last_log_date,
            points=log.points,
            now=now,
        )
        Account.objects.filter(pk=account.pk).update(
            total_points=F('total_points') + log.points,
            daily_xp=step.daily_xp,
            streak=step.streak,
            last_log_date=step.activity_at,
        )

    log.status = TaskLog.Status.COMPLETED
    log.completed_at = now
    account.refresh_from_db(fields=['total_points', 'daily_xp', 'streak', 'last_log_date'])
    log.account = account

    logger.info(
        f"Task log {log.pk} completed: +{log.points} pts, "
        f"account {account.pk} total={account.total_points}"
    )
    return log, account.total_points


def delete_task_log(log_id):
    """Remove an entry, reversing its points if it was completed."""
    with transaction.atomic():
        log = TaskLog.objects.select_for_update().filter(pk=log_id).first()
        if log is None:
            raise NotFound("Log not found")

        if log.status == TaskLog.Status.COMPLETED:
            list(Account.objects.select_for_update().filter(pk=log.account_id))
            _reverse_points(log.account_id, log.points)
            logger.info(f"Reversed {log.points} pts on account {log.account_id}")

        log.delete()

    logger.info(f"Task log {log_id} deleted")


def batch_delete_task_logs(ids):
    """
    Delete many entries with one ledger write per affected account.

    Ids that do not exist are ignored. All-or-nothing: the ledger
    updates and the deletes commit together.

    Returns:
        Number of entries removed.
    """
    ids = validate_id_set(ids)

    with transaction.atomic():
        locked_ids = list(
            TaskLog.objects.select_for_update()
            .filter(pk__in=ids)
            .order_by('pk')
            .values_list('pk', flat=True)
        )
        if not locked_ids:
            return 0

        # order_by() replaces the model ordering, which would leak into GROUP BY
        exposure = (
            TaskLog.objects.filter(pk__in=locked_ids, status=TaskLog.Status.COMPLETED)
            .values('account_id')
            .annotate(points=Sum('points'))
            .order_by('account_id')
        )
        exposure = {row['account_id']: row['points'] or 0 for row in exposure}

        if exposure:
            list(
                Account.objects.select_for_update()
                .filter(pk__in=list(exposure))
                .order_by('pk')
                .values_list('pk', flat=True)
            )
            for account_id, points in exposure.items():
                _reverse_points(account_id, points)
                logger.info(f"Batch reversal of {points} pts on account {account_id}")

        deleted, _ = TaskLog.objects.filter(pk__in=locked_ids).delete()

    logger.info(f"Batch deleted {deleted} task logs across {len(exposure)} ledger update(s)")
    return deleted


def _insight_entry(log):
    return {
        'task_description': log.task_description,
        'duration': log.duration,
        'tags': list(log.tags or []),
        'points': log.points,
        'status': log.status,
        'created_at': log.created_at,
        'completed_at': log.completed_at,
    }


def generate_weekly_insight(identity, orchestrator=None, now=None):
    """
    Rate the trailing 7 days and cache the result on the account.

    Points are never touched here.
    """
    account = get_account(identity)
    now = now or timezone.now()
    since = now - datetime.timedelta(days=INSIGHT_WINDOW_DAYS)

    logs = (
        TaskLog.objects.filter(account=account)
        .filter(Q(created_at__gte=since) | Q(completed_at__gte=since))
        .order_by('created_at', 'id')
    )
    entries = [_insight_entry(log) for log in logs]

    orchestrator = orchestrator or ScoringOrchestrator()
    result = orchestrator.score_week(
        entries,
        account.display_name or account.email,
        now=now,
    )

    Account.objects.filter(pk=account.pk).update(
        last_insight_feedback=result['feedback'],
        last_insight_rating=result['rating'],
        last_insight_generated_at=now,
    )
    logger.info(
        f"Weekly insight for account {account.pk}: {result['rating']}/10 "
        f"via {result['scoring_method']}"
    )

    return {
        'rating': result['rating'],
        'feedback': result['feedback'],
        'generatedAt': now,
        'scoring_method': result['scoring_method'],
    }
