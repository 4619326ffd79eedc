# worklog/tests/test_orchestration.py
"""
AI Orchestration Tests
======================

Tests for the oracle client, the score cache, and the orchestrator that
chains them with the fallback engine.

Test Philosophy:
----------------
- Mock external dependencies (OpenAI API) to avoid costs and flakiness
- Verify every error path ends in a usable fallback score
- Verify unusable oracle replies are never cached

Test Categories:
----------------
1. Reply parsing - fenced JSON, prose, missing keys, clamps
2. External scorer - success and failure contracts
3. Orchestrator - cache, fallback, weekly review
"""

from __future__ import annotations

import json
from typing import Any, Dict
from unittest.mock import MagicMock, patch

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase, override_settings

from worklog.ai_engine.cache import AIScoringCache
from worklog.ai_engine.external_scorer import (
    ExternalAIScorer,
    ParsedRating,
    ParsedScore,
    ParseError,
    parse_rating_response,
    parse_score_response,
)
from worklog.ai_engine.fallback import OFFLINE_MARKER
from worklog.ai_engine.orchestrator import (
    SCORING_METHOD_AI,
    SCORING_METHOD_CACHE,
    SCORING_METHOD_FALLBACK,
    ScoringOrchestrator,
)


# ===========================================================================
# HELPER FIXTURES
# ===========================================================================


def create_mock_openai_response(content: str) -> MagicMock:
    """
    Create a mock OpenAI chat completion whose first choice carries `content`.
    """
    mock_choice = MagicMock()
    mock_choice.message.content = content

    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


def create_configured_scorer(mock_openai_class: MagicMock, content: Any) -> MagicMock:
    """
    Wire the patched OpenAI class so every completion returns `content`
    (or raises it, when it is an exception).
    """
    mock_client = MagicMock()
    mock_openai_class.return_value = mock_client
    if isinstance(content, Exception):
        mock_client.chat.completions.create.side_effect = content
    else:
        mock_client.chat.completions.create.return_value = create_mock_openai_response(content)
    return mock_client


def score_json(score: Any, feedback: str = "Solid focus block") -> str:
    return json.dumps({"score": score, "feedback": feedback})


# ===========================================================================
# REPLY PARSING TESTS
# ===========================================================================


class TestReplyParsing(SimpleTestCase):
    """The parsers tolerate wrapping noise but never invent a score."""

    def test_plain_json(self) -> None:
        result = parse_score_response('{"score": 120, "feedback": "Nice"}')
        self.assertEqual(result, ParsedScore(score=120, feedback="Nice"))

    def test_markdown_fenced_json(self) -> None:
        text = '```json\n{"score": 250, "feedback": "Deep work"}\n```'
        self.assertEqual(parse_score_response(text).score, 250)

    def test_json_inside_prose(self) -> None:
        text = 'Here is my answer: {"score": 42, "feedback": "ok"} Hope this helps!'
        self.assertEqual(parse_score_response(text).score, 42)

    def test_score_is_clamped_to_cap(self) -> None:
        self.assertEqual(parse_score_response(score_json(9000)).score, 400)
        self.assertEqual(parse_score_response(score_json(-15)).score, 0)

    def test_numeric_string_score_is_accepted(self) -> None:
        self.assertEqual(parse_score_response(score_json("88")).score, 88)

    def test_missing_score_is_parse_error(self) -> None:
        self.assertIsInstance(parse_score_response('{"feedback": "hi"}'), ParseError)

    def test_non_numeric_score_is_parse_error(self) -> None:
        self.assertIsInstance(parse_score_response(score_json("lots")), ParseError)
        self.assertIsInstance(parse_score_response(score_json(True)), ParseError)

    def test_no_json_is_parse_error(self) -> None:
        for text in (None, "", "   ", "I cannot score this", "[1, 2, 3]", "{not json}"):
            self.assertIsInstance(parse_score_response(text), ParseError)

    def test_rating_is_clamped(self) -> None:
        self.assertEqual(
            parse_rating_response('{"rating": 14, "feedback": "Wow"}'),
            ParsedRating(rating=10, feedback="Wow"),
        )
        self.assertEqual(parse_rating_response('{"rating": -2}').rating, 0)

    def test_missing_feedback_becomes_empty_string(self) -> None:
        self.assertEqual(parse_score_response('{"score": 10}').feedback, "")


# ===========================================================================
# EXTERNAL SCORER TESTS
# ===========================================================================


class TestExternalAIScorer(SimpleTestCase):
    """Tests for the ExternalAIScorer service class."""

    def test_scorer_initializes_without_api_key(self) -> None:
        """Scorer should not crash when API key is missing."""
        with override_settings(OPENAI_API_KEY=None):
            scorer = ExternalAIScorer(api_key=None)

            self.assertFalse(scorer.is_configured)
            self.assertIn("not configured", scorer.configuration_error.lower())

    def test_scorer_returns_error_contract_when_not_configured(self) -> None:
        with override_settings(OPENAI_API_KEY=None):
            scorer = ExternalAIScorer(api_key=None)

            result = scorer.score_task("Coding", 60, ["Coding"])

            self.assertIsNone(result["score"])
            self.assertEqual(result["error_code"], "SCORER_NOT_CONFIGURED")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_scorer_calls_openai_when_configured(self, mock_openai_class: MagicMock) -> None:
        mock_client = create_configured_scorer(mock_openai_class, score_json(300, "Great grind"))

        scorer = ExternalAIScorer(api_key="test-key", timeout=5)
        result = scorer.score_task("Built the auth flow", 240, ["Coding"])

        self.assertEqual(result, {"score": 300, "feedback": "Great grind"})
        mock_openai_class.assert_called_once_with(api_key="test-key", max_retries=0)
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["timeout"], 5)
        self.assertIn("240 minutes", kwargs["messages"][1]["content"])

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_scorer_handles_api_timeout(self, mock_openai_class: MagicMock) -> None:
        from openai import APITimeoutError

        create_configured_scorer(mock_openai_class, APITimeoutError(request=MagicMock()))

        result = ExternalAIScorer(api_key="test-key").score_task("Test", 30, [])

        self.assertIsNone(result["score"])
        self.assertEqual(result["error_code"], "TIMEOUT")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_scorer_handles_rate_limit(self, mock_openai_class: MagicMock) -> None:
        from openai import RateLimitError

        mock_response = MagicMock()
        mock_response.status_code = 429
        create_configured_scorer(
            mock_openai_class,
            RateLimitError(message="Rate limit exceeded", response=mock_response, body=None),
        )

        result = ExternalAIScorer(api_key="test-key").score_task("Test", 30, [])

        self.assertEqual(result["error_code"], "RATE_LIMIT")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_scorer_handles_unexpected_exception(self, mock_openai_class: MagicMock) -> None:
        create_configured_scorer(mock_openai_class, RuntimeError("socket closed"))

        result = ExternalAIScorer(api_key="test-key").score_task("Test", 30, [])

        self.assertEqual(result["error_code"], "UNEXPECTED_ERROR")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_scorer_reports_unparseable_reply(self, mock_openai_class: MagicMock) -> None:
        create_configured_scorer(mock_openai_class, "Sorry, I can't help with that.")

        result = ExternalAIScorer(api_key="test-key").score_task("Test", 30, [])

        self.assertIsNone(result["score"])
        self.assertEqual(result["error_code"], "PARSE_ERROR")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_weekly_review(self, mock_openai_class: MagicMock) -> None:
        create_configured_scorer(
            mock_openai_class, '```{"rating": 8, "feedback": "Consistent week."}```'
        )

        result = ExternalAIScorer(api_key="test-key").score_week([], "Ada")

        self.assertEqual(result, {"rating": 8, "feedback": "Consistent week."})

    def test_scorer_health_check(self) -> None:
        with override_settings(OPENAI_API_KEY=None):
            health = ExternalAIScorer(api_key=None).health_check()

            self.assertIn("model", health)
            self.assertFalse(health["is_configured"])


# ===========================================================================
# CACHE TESTS
# ===========================================================================


class TestAIScoringCache(SimpleTestCase):
    """Scores are reused only for identical sessions, never for failures."""

    def setUp(self) -> None:
        cache.clear()
        self.cache_manager = AIScoringCache()

    def test_second_lookup_is_a_hit(self) -> None:
        scoring_func = MagicMock(return_value={"score": 90, "feedback": "ok"})

        first = self.cache_manager.get_or_set_score("Write docs", 60, ["Writing"], scoring_func)
        second = self.cache_manager.get_or_set_score("Write docs", 60, ["Writing"], scoring_func)

        self.assertFalse(first["cached"])
        self.assertTrue(second["cached"])
        self.assertEqual(second["score"], 90)
        scoring_func.assert_called_once()

    def test_key_ignores_case_whitespace_and_tag_order(self) -> None:
        key = self.cache_manager._generate_key
        self.assertEqual(
            key("Write docs", 60, ["Writing", "Review"]),
            key("  write DOCS ", 60, ["review", "WRITING"]),
        )
        self.assertNotEqual(key("Write docs", 60, []), key("Write docs", 61, []))

    def test_failures_are_not_cached(self) -> None:
        def failing():
            raise RuntimeError("oracle down")

        with self.assertRaises(RuntimeError):
            self.cache_manager.get_or_set_score("Flaky", 10, [], failing)

        recovered = self.cache_manager.get_or_set_score(
            "Flaky", 10, [], lambda: {"score": 6, "feedback": ""}
        )
        self.assertFalse(recovered["cached"])


# ===========================================================================
# ORCHESTRATOR TESTS
# ===========================================================================


class TestScoringOrchestrator(TestCase):
    """Tests for the ScoringOrchestrator coordination layer."""

    def setUp(self) -> None:
        cache.clear()

    def test_orchestrator_initializes_with_skip_ai(self) -> None:
        orchestrator = ScoringOrchestrator(skip_ai_init=True)

        self.assertFalse(orchestrator.ai_available)
        self.assertIsNone(orchestrator.ai_service)

    def test_without_oracle_uses_fallback(self) -> None:
        result = ScoringOrchestrator(skip_ai_init=True).score_task(
            "Coding session", 480, ["Coding"]
        )

        self.assertEqual(result["score"], 346)
        self.assertEqual(result["scoring_method"], SCORING_METHOD_FALLBACK)
        self.assertEqual(result["error_code"], "SCORER_NOT_CONFIGURED")
        self.assertIn(OFFLINE_MARKER, result["feedback"])

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_oracle_score_is_used_then_cached(self, mock_openai_class: MagicMock) -> None:
        mock_client = create_configured_scorer(mock_openai_class, score_json(275, "Strong"))
        orchestrator = ScoringOrchestrator(ai_service=ExternalAIScorer(api_key="test-key"))

        first = orchestrator.score_task("Refactor billing", 300, ["Coding"])
        second = orchestrator.score_task("refactor billing", 300, ["coding"])

        self.assertEqual(first["score"], 275)
        self.assertEqual(first["scoring_method"], SCORING_METHOD_AI)
        self.assertIsNone(first["error_code"])
        self.assertEqual(second["scoring_method"], SCORING_METHOD_CACHE)
        mock_client.chat.completions.create.assert_called_once()

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_oracle_failure_falls_back(self, mock_openai_class: MagicMock) -> None:
        from openai import APIConnectionError

        create_configured_scorer(mock_openai_class, APIConnectionError(request=MagicMock()))
        orchestrator = ScoringOrchestrator(ai_service=ExternalAIScorer(api_key="test-key"))

        result = orchestrator.score_task("Team meeting", 60, ["Meeting"])

        self.assertEqual(result["score"], 29)
        self.assertEqual(result["scoring_method"], SCORING_METHOD_FALLBACK)
        self.assertEqual(result["error_code"], "CONNECTION_ERROR")

    @patch("worklog.ai_engine.external_scorer.OpenAI")
    def test_garbage_reply_falls_back_and_is_not_cached(self, mock_openai_class: MagicMock) -> None:
        mock_client = create_configured_scorer(mock_openai_class, "no json here")
        orchestrator = ScoringOrchestrator(ai_service=ExternalAIScorer(api_key="test-key"))

        first = orchestrator.score_task("Nap time", 120, ["Nap"])
        self.assertEqual(first["score"], 0)
        self.assertEqual(first["error_code"], "PARSE_ERROR")

        mock_client.chat.completions.create.return_value = create_mock_openai_response(
            score_json(0, "Rest is fine")
        )
        second = orchestrator.score_task("Nap time", 120, ["Nap"])
        self.assertEqual(second["scoring_method"], SCORING_METHOD_AI)

    def test_weekly_review_without_oracle(self) -> None:
        result = ScoringOrchestrator(skip_ai_init=True).score_week([], "Ada")

        self.assertEqual(result["rating"], 1)
        self.assertEqual(result["scoring_method"], SCORING_METHOD_FALLBACK)

    def test_weekly_oracle_error_falls_back(self) -> None:
        ai_service = MagicMock(is_configured=True)
        ai_service.score_week.return_value = {
            "rating": None, "feedback": "", "error_code": "TIMEOUT", "error_message": "",
        }
        orchestrator = ScoringOrchestrator(ai_service=ai_service)

        result = orchestrator.score_week([], "Ada")

        self.assertEqual(result["scoring_method"], SCORING_METHOD_FALLBACK)
        self.assertEqual(result["error_code"], "TIMEOUT")

    def test_health_check(self) -> None:
        health: Dict[str, Any] = ScoringOrchestrator(skip_ai_init=True).health_check()

        self.assertEqual(health["orchestrator"], "healthy")
        self.assertFalse(health["ai_available"])
        self.assertIsNone(health["ai_service"])
