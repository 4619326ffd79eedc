# worklog/tests/test_api.py
"""
HTTP-level tests for the task log endpoints.

The oracle key is blanked for the whole module, so every request scores
through the fallback engine and no network call is made.
"""

from __future__ import annotations

from django.core.cache import cache
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Account
from worklog.models import TaskLog


@override_settings(OPENAI_API_KEY="")
class TaskLogAPITestCase(APITestCase):

    def setUp(self) -> None:
        cache.clear()
        self.account = Account.objects.create(
            external_id="uid-ada", email="ada@example.com", display_name="Ada"
        )

    def create_log(self, **overrides):
        payload = {
            "identity": "uid-ada",
            "task_description": "Coding session",
            "duration": 480,
            "tags": ["Coding"],
        }
        payload.update(overrides)
        return self.client.post(reverse("tasklog-create"), payload, format="json")


# ===========================================================================
# CREATE / LIST
# ===========================================================================


class TestCreateEndpoint(TaskLogAPITestCase):

    def test_create_returns_scored_pending_entry(self) -> None:
        response = self.create_log()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["points"], 346)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["scoring_method"], "fallback")
        self.assertIn("AI Offline", response.data["ai_feedback"])

    def test_client_supplied_points_are_ignored(self) -> None:
        response = self.create_log(points=9999)
        self.assertEqual(response.data["points"], 346)

    def test_validation_errors(self) -> None:
        cases = [
            {"task_description": ""},
            {"duration": -5},
            {"duration": "soon"},
            {"tags": "Coding"},
            {"tags": ["x" * 51]},
        ]
        for overrides in cases:
            response = self.create_log(**overrides)
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, overrides)
        self.assertFalse(TaskLog.objects.exists())

    def test_unknown_identity_is_404(self) -> None:
        response = self.create_log(identity="ghost")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "User not found")

    def test_list_with_status_filter(self) -> None:
        first = self.create_log().data
        self.create_log(task_description="Team meeting", duration=60, tags=["Meeting"])
        self.client.put(reverse("tasklog-complete", args=[first["id"]]))

        url = reverse("tasklog-list", args=["uid-ada"])
        self.assertEqual(len(self.client.get(url).data), 2)

        completed = self.client.get(url, {"status": "completed"}).data
        self.assertEqual([entry["id"] for entry in completed], [first["id"]])

        response = self.client.get(url, {"status": "done"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# ===========================================================================
# COMPLETE / DELETE
# ===========================================================================


class TestLifecycleEndpoints(TaskLogAPITestCase):

    def test_complete_returns_new_total(self) -> None:
        log_id = self.create_log().data["id"]

        response = self.client.put(reverse("tasklog-complete", args=[log_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["userPoints"], 346)
        self.assertEqual(response.data["log"]["status"], "completed")
        self.assertEqual(response.data["account"]["level"]["level"], 1)

    def test_double_complete_is_rejected(self) -> None:
        log_id = self.create_log().data["id"]
        url = reverse("tasklog-complete", args=[log_id])
        self.client.put(url)

        response = self.client.put(url)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Task already completed")
        self.assertEqual(Account.objects.get(pk=self.account.pk).total_points, 346)

    def test_complete_missing_entry_is_404(self) -> None:
        response = self.client.put(reverse("tasklog-complete", args=[424242]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["detail"], "Log not found")

    def test_delete_completed_entry_reverses_points(self) -> None:
        log_id = self.create_log().data["id"]
        self.client.put(reverse("tasklog-complete", args=[log_id]))

        response = self.client.delete(reverse("tasklog-detail", args=[log_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["msg"], "Log removed")
        self.assertEqual(Account.objects.get(pk=self.account.pk).total_points, 0)

    def test_batch_delete(self) -> None:
        ids = [self.create_log().data["id"] for _ in range(3)]
        for log_id in ids[:2]:
            self.client.put(reverse("tasklog-complete", args=[log_id]))

        response = self.client.post(
            reverse("tasklog-batch-delete"), {"ids": ids + [424242]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 3)
        self.assertEqual(Account.objects.get(pk=self.account.pk).total_points, 0)

    def test_batch_delete_requires_ids(self) -> None:
        response = self.client.post(reverse("tasklog-batch-delete"), {"ids": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# ===========================================================================
# INSIGHT / HEALTH
# ===========================================================================


class TestInsightEndpoint(TaskLogAPITestCase):

    def test_generate_insight(self) -> None:
        response = self.client.post(
            reverse("tasklog-insight"), {"identity": "uid-ada"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["insight"]["rating"], 1)

        account = self.client.get(reverse("account-detail", args=["uid-ada"])).data
        self.assertEqual(account["last_insight"]["rating"], 1)

    def test_unknown_identity_is_404(self) -> None:
        response = self.client.post(
            reverse("tasklog-insight"), {"identity": "ghost"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TestHealthEndpoint(TaskLogAPITestCase):

    def test_health_reports_fallback_mode(self) -> None:
        response = self.client.get(reverse("health"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "ok")
        self.assertFalse(response.data["scoring"]["ai_available"])
