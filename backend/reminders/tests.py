# reminders/tests.py
"""
Reminders App Test Suite
========================

Test Categories:
----------------
1. Sweep Tests - due selection, delivery, failure handling
2. Reminders API Tests - schedule, list, edit, cancel
"""

import datetime
from unittest.mock import patch

from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Account
from .celery_tasks import REMINDER_SUBJECT, dispatch_due_reminders
from .models import Reminder


def create_reminder(account, minutes_from_now, message='Stand up and stretch'):
    return Reminder.objects.create(
        account=account,
        user_email=account.email,
        message=message,
        scheduled_time=timezone.now() + datetime.timedelta(minutes=minutes_from_now),
    )


# ===========================================================================
# SWEEP TESTS
# ===========================================================================

class DispatchDueRemindersTest(TestCase):

    def setUp(self):
        self.account = Account.objects.create(external_id='uid-1', email='ada@example.com')

    def test_due_reminders_are_sent_once(self):
        due = create_reminder(self.account, -5)
        future = create_reminder(self.account, 30)

        result = dispatch_due_reminders.apply().get()

        self.assertEqual(result, {'due': 1, 'sent': 1, 'failed': 0})
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, REMINDER_SUBJECT)
        self.assertEqual(mail.outbox[0].to, ['ada@example.com'])
        self.assertIn('Stand up and stretch', mail.outbox[0].body)

        due.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(due.status, Reminder.Status.SENT)
        self.assertIsNotNone(due.sent_at)
        self.assertEqual(future.status, Reminder.Status.PENDING)

        # A second tick has nothing left to send
        self.assertEqual(dispatch_due_reminders.apply().get()['due'], 0)
        self.assertEqual(len(mail.outbox), 1)

    def test_failed_delivery_stays_pending(self):
        reminder = create_reminder(self.account, -1)

        with patch('reminders.celery_tasks.send_mail', side_effect=OSError('SMTP down')):
            result = dispatch_due_reminders.apply().get()

        self.assertEqual(result, {'due': 1, 'sent': 0, 'failed': 1})
        reminder.refresh_from_db()
        self.assertEqual(reminder.status, Reminder.Status.PENDING)
        self.assertEqual(reminder.attempts, 1)

        # Next tick retries and succeeds
        dispatch_due_reminders.apply().get()
        reminder.refresh_from_db()
        self.assertEqual(reminder.status, Reminder.Status.SENT)
        self.assertEqual(reminder.attempts, 2)

    def test_one_failure_does_not_block_others(self):
        first = create_reminder(self.account, -10, message='first')
        second = create_reminder(self.account, -5, message='second')

        with patch(
            'reminders.celery_tasks.send_mail',
            side_effect=[OSError('SMTP down'), 1],
        ):
            result = dispatch_due_reminders.apply().get()

        self.assertEqual(result['sent'], 1)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.status, Reminder.Status.PENDING)
        self.assertEqual(second.status, Reminder.Status.SENT)

    def test_nothing_due(self):
        create_reminder(self.account, 10)
        self.assertEqual(dispatch_due_reminders.apply().get(), {'due': 0, 'sent': 0, 'failed': 0})


# ===========================================================================
# API TESTS
# ===========================================================================

class RemindersAPITest(APITestCase):

    def setUp(self):
        self.account = Account.objects.create(external_id='uid-1', email='ada@example.com')
        self.when = (timezone.now() + datetime.timedelta(hours=1)).isoformat()

    def test_schedule_reminder(self):
        response = self.client.post(
            '/api/v1/reminders/',
            {'identity': 'uid-1', 'message': 'Drink water', 'scheduled_time': self.when},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['user_email'], 'ada@example.com')
        self.assertNotIn('identity', response.data)

    def test_schedule_for_unknown_identity(self):
        response = self.client.post(
            '/api/v1/reminders/',
            {'identity': 'ghost', 'message': 'Drink water', 'scheduled_time': self.when},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_blank_message_is_rejected(self):
        response = self.client.post(
            '/api/v1/reminders/',
            {'identity': 'uid-1', 'message': '   ', 'scheduled_time': self.when},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_ordered_by_time(self):
        later = create_reminder(self.account, 60)
        sooner = create_reminder(self.account, 5)

        response = self.client.get('/api/v1/reminders/user/uid-1/')

        self.assertEqual([r['id'] for r in response.data], [sooner.pk, later.pk])

    def test_edit_pending_reminder(self):
        reminder = create_reminder(self.account, 60)

        response = self.client.patch(
            f'/api/v1/reminders/{reminder.pk}/', {'message': 'Go for a walk'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        reminder.refresh_from_db()
        self.assertEqual(reminder.message, 'Go for a walk')

    def test_sent_reminder_cannot_be_edited(self):
        reminder = create_reminder(self.account, -5)
        Reminder.objects.filter(pk=reminder.pk).update(status=Reminder.Status.SENT)

        response = self.client.patch(
            f'/api/v1/reminders/{reminder.pk}/', {'message': 'Too late'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cancel_reminder(self):
        reminder = create_reminder(self.account, 60)

        response = self.client.delete(f'/api/v1/reminders/{reminder.pk}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Reminder.objects.filter(pk=reminder.pk).exists())
