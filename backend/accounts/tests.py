# accounts/tests.py
"""
Accounts App Test Suite
=======================

Tests for the XP ledger, level curve and sign-in sync.

Test Categories:
----------------
1. Gamification Tests - Level curve, streaks, daily XP
2. Manager Tests - Get-or-create, re-linking, daily reset
3. Accounts API Tests - HTTP endpoints
"""

import datetime

from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from .gamification import (
    apply_award,
    continue_streak,
    goal_reached,
    level_for_points,
    level_progress,
    needs_daily_reset,
)
from .models import Account

UTC = datetime.timezone.utc


# ===========================================================================
# GAMIFICATION TESTS
# ===========================================================================

class LevelCurveTest(SimpleTestCase):
    """level = floor(sqrt(total / 1000)) + 1"""

    def test_level_boundaries(self):
        expected = {0: 1, 999: 1, 1000: 2, 3999: 2, 4000: 3, 9000: 4, 1000000: 32}
        for total, level in expected.items():
            self.assertEqual(level_for_points(total), level, total)

    def test_progress_within_level(self):
        """2500 XP sits halfway between level 2 (1000) and level 3 (4000)."""
        progress = level_progress(2500)

        self.assertEqual(progress.level, 2)
        self.assertEqual(progress.current_threshold, 1000)
        self.assertEqual(progress.next_threshold, 4000)
        self.assertEqual(progress.progress_percent, 50.0)

    def test_progress_at_zero(self):
        progress = level_progress(0)
        self.assertEqual(progress.progress_percent, 0.0)
        self.assertEqual(progress.next_threshold, 1000)

    def test_negative_total_is_treated_as_zero(self):
        self.assertEqual(level_progress(-50).level, 1)


class DailyLedgerTest(SimpleTestCase):

    def setUp(self):
        self.now = datetime.datetime(2024, 3, 10, 9, 30, tzinfo=UTC)
        self.yesterday = self.now - datetime.timedelta(days=1)

    def test_reset_needed_on_new_utc_day(self):
        self.assertTrue(needs_daily_reset(self.yesterday, self.now))
        self.assertTrue(needs_daily_reset(None, self.now))
        self.assertFalse(needs_daily_reset(self.now.replace(hour=0, minute=1), self.now))

    def test_streak_rules(self):
        self.assertEqual(continue_streak(0, None, self.now), 1)
        self.assertEqual(continue_streak(4, self.yesterday, self.now), 5)
        self.assertEqual(continue_streak(4, self.now, self.now), 4)
        self.assertEqual(continue_streak(4, self.now - datetime.timedelta(days=2), self.now), 1)

    def test_award_same_day_accumulates(self):
        step = apply_award(daily_xp=200, streak=3, last_log_date=self.now, points=120, now=self.now)
        self.assertEqual(step.daily_xp, 320)
        self.assertEqual(step.streak, 3)

    def test_award_next_day_starts_fresh(self):
        step = apply_award(daily_xp=250, streak=3, last_log_date=self.yesterday, points=40, now=self.now)
        self.assertEqual(step.daily_xp, 40)
        self.assertEqual(step.streak, 4)
        self.assertEqual(step.activity_at, self.now)

    def test_goal(self):
        self.assertTrue(goal_reached(500, 500))
        self.assertFalse(goal_reached(499, 500))


# ===========================================================================
# MANAGER TESTS
# ===========================================================================

class AccountSyncTest(TestCase):
    """Tests for AccountManager.sync"""

    def test_first_sync_creates_account(self):
        account = Account.objects.sync('uid-1', 'ada@example.com', 'Ada')

        self.assertEqual(account.external_id, 'uid-1')
        self.assertEqual(account.total_points, 0)
        self.assertEqual(account.daily_goal, 500)
        self.assertEqual(Account.objects.count(), 1)

    def test_repeated_sync_returns_same_account(self):
        first = Account.objects.sync('uid-1', 'ada@example.com', 'Ada')
        second = Account.objects.sync('uid-1', 'ada@example.com', 'Ada Lovelace')

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.display_name, 'Ada Lovelace')
        self.assertEqual(Account.objects.count(), 1)

    def test_known_email_relinks_identity(self):
        original = Account.objects.sync('uid-old', 'ada@example.com', 'Ada')
        Account.objects.filter(pk=original.pk).update(total_points=1500)

        relinked = Account.objects.sync('uid-new', 'ada@example.com', 'Ada')

        self.assertEqual(relinked.pk, original.pk)
        self.assertEqual(relinked.external_id, 'uid-new')
        self.assertEqual(relinked.total_points, 1500)
        self.assertEqual(Account.objects.count(), 1)

    def test_email_domain_is_normalized(self):
        account = Account.objects.sync('uid-1', 'Ada@EXAMPLE.COM')
        self.assertEqual(account.email, 'Ada@example.com')

    def test_losing_a_create_race_refetches(self):
        """A unique-constraint hit on create returns the row that won."""
        winner = Account.objects.create(external_id='uid-1', email='ada@example.com')

        account = Account.objects._create_or_refetch('uid-1', 'ada@example.com', '')

        self.assertEqual(account.pk, winner.pk)
        self.assertEqual(Account.objects.count(), 1)

    def test_email_taken_by_other_account_keeps_profile(self):
        Account.objects.sync('uid-1', 'ada@example.com')
        Account.objects.sync('uid-2', 'grace@example.com')

        account = Account.objects.sync('uid-2', 'ada@example.com')

        self.assertEqual(account.email, 'grace@example.com')

    def test_missing_identity_or_email(self):
        with self.assertRaises(ValueError):
            Account.objects.sync('', 'ada@example.com')
        with self.assertRaises(ValueError):
            Account.objects.sync('uid-1', '')

    def test_duplicate_identity_violates_constraint(self):
        Account.objects.create(external_id='uid-1', email='a@example.com')
        with self.assertRaises(IntegrityError), transaction.atomic():
            Account.objects.create(external_id='uid-1', email='b@example.com')


class DailyResetTest(TestCase):

    def setUp(self):
        self.account = Account.objects.create(external_id='uid-1', email='ada@example.com')

    def test_stale_daily_xp_is_reset_on_sync(self):
        yesterday = timezone.now() - datetime.timedelta(days=1)
        Account.objects.filter(pk=self.account.pk).update(daily_xp=250, last_log_date=yesterday)

        account = Account.objects.sync('uid-1', 'ada@example.com')

        self.assertEqual(account.daily_xp, 0)
        self.assertEqual(Account.objects.get(pk=account.pk).daily_xp, 0)

    def test_same_day_daily_xp_is_kept(self):
        Account.objects.filter(pk=self.account.pk).update(daily_xp=250, last_log_date=timezone.now())

        account = Account.objects.sync('uid-1', 'ada@example.com')

        self.assertEqual(account.daily_xp, 250)

    def test_reset_leaves_total_points_alone(self):
        yesterday = timezone.now() - datetime.timedelta(days=1)
        Account.objects.filter(pk=self.account.pk).update(
            daily_xp=250, total_points=4000, last_log_date=yesterday
        )

        self.assertTrue(Account.objects.reset_daily_if_stale(self.account))
        self.assertEqual(Account.objects.get(pk=self.account.pk).total_points, 4000)


# ===========================================================================
# API TESTS
# ===========================================================================

class AccountsAPITest(APITestCase):

    def test_sync_endpoint(self):
        payload = {'identity': 'uid-1', 'email': 'ada@example.com', 'display_name': 'Ada'}

        response = self.client.post('/api/v1/auth/sync/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['identity'], 'uid-1')
        self.assertEqual(response.data['level']['level'], 1)
        self.assertIsNone(response.data['last_insight'])

    def test_sync_requires_valid_email(self):
        response = self.client.post(
            '/api/v1/auth/sync/', {'identity': 'uid-1', 'email': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_account_detail(self):
        Account.objects.create(external_id='uid-1', email='ada@example.com', total_points=2500)

        response = self.client.get('/api/v1/accounts/uid-1/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_points'], 2500)
        self.assertEqual(response.data['level']['progress_percent'], 50.0)
        self.assertFalse(response.data['daily_goal_reached'])

    def test_unknown_account_is_404(self):
        response = self.client.get('/api/v1/accounts/ghost/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
