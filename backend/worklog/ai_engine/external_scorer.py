# worklog/ai_engine/external_scorer.py
"""
Scoring Oracle Client
=====================

Asks an OpenAI chat model for the XP of one work session, or for a 0-10
rating of a week of sessions.

No ORM access happens here: callers pass plain values (strings, ints,
dicts) and get plain dicts back, so the module can be tested with the
OpenAI class patched out and no database.

Result contract:
----------------
Success:  {"score": int, "feedback": str}   / {"rating": int, "feedback": str}
Failure:  {"score": None, "feedback": "", "error_code": str, "error_message": str}

Error codes:
------------
SCORER_NOT_CONFIGURED, AUTH_ERROR, RATE_LIMIT, TIMEOUT, CONNECTION_ERROR,
BAD_REQUEST, API_ERROR_<status>, UNEXPECTED_ERROR, PARSE_ERROR

The client never raises to its caller; the orchestrator reads
`error_code` and switches to the fallback engine.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from django.conf import settings
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    OpenAI,
    RateLimitError,
)

from .fallback import MAX_TASK_POINTS, round_half_up

logger = logging.getLogger(__name__)

MAX_WEEKLY_RATING = 10


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ScorerUnavailableError(Exception):
    """The oracle gave no usable result; the message is the error code."""

    pass


# ---------------------------------------------------------------------------
# Reply parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedScore:
    score: int
    feedback: str


@dataclass(frozen=True)
class ParsedRating:
    rating: int
    feedback: str


@dataclass(frozen=True)
class ParseError:
    reason: str
    raw: str = ""


def extract_json_object(text: Optional[str]) -> Union[Dict[str, Any], ParseError]:
    """
    Decode the JSON object embedded in a model reply.

    Models sometimes wrap JSON in markdown fences or prose, so only the
    substring between the first "{" and the last "}" is decoded.
    """
    if text is None or not text.strip():
        return ParseError("empty response")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return ParseError("no JSON object in response", raw=text[:200])

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        return ParseError(f"invalid JSON: {e.msg}", raw=text[:200])

    if not isinstance(data, dict):
        return ParseError("JSON payload is not an object", raw=text[:200])
    return data


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return round_half_up(number)


def _coerce_feedback(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_bounded(text: Optional[str], key: str, upper: int):
    data = extract_json_object(text)
    if isinstance(data, ParseError):
        return data

    if key not in data:
        return ParseError(f"missing '{key}' key", raw=(text or "")[:200])
    value = _coerce_int(data[key])
    if value is None:
        return ParseError(f"'{key}' is not a number", raw=(text or "")[:200])

    return max(0, min(upper, value)), _coerce_feedback(data.get("feedback"))


def parse_score_response(text: Optional[str]) -> Union[ParsedScore, ParseError]:
    parsed = _parse_bounded(text, "score", MAX_TASK_POINTS)
    if isinstance(parsed, ParseError):
        return parsed
    return ParsedScore(score=parsed[0], feedback=parsed[1])


def parse_rating_response(text: Optional[str]) -> Union[ParsedRating, ParseError]:
    parsed = _parse_bounded(text, "rating", MAX_WEEKLY_RATING)
    if isinstance(parsed, ParseError):
        return parsed
    return ParsedRating(rating=parsed[0], feedback=parsed[1])


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ExternalAIScorer:
    """
    OpenAI-backed oracle for session XP and weekly ratings.

    A missing key is not an error at construction time: the instance
    records why it is unusable (`configuration_error`) and every call
    answers SCORER_NOT_CONFIGURED, which the orchestrator treats like any
    other outage.

    Each request is made once (no client retries) and bounded by
    `timeout`, so a slow oracle costs at most one timeout before the
    fallback answers.
    """

    DEFAULT_MODEL: str = "gpt-4o-mini"
    DEFAULT_TEMPERATURE: float = 0.2
    DEFAULT_MAX_TOKENS: int = 200
    DEFAULT_TIMEOUT: float = 10.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        **client_kwargs: Any,
    ) -> None:
        """
        Args:
            api_key: Overrides settings.OPENAI_API_KEY.
            model: Overrides settings.OPENAI_MODEL.
            timeout: Seconds per request; overrides settings.AI_TIMEOUT_SECONDS.
            **client_kwargs: Passed through to the OpenAI constructor.
        """
        self.model: str = model or getattr(settings, "OPENAI_MODEL", None) or self.DEFAULT_MODEL
        self.timeout: float = (
            timeout or getattr(settings, "AI_TIMEOUT_SECONDS", None) or self.DEFAULT_TIMEOUT
        )
        self._client_kwargs: Dict[str, Any] = client_kwargs

        self.api_key: Optional[str] = None
        self.client: Optional[OpenAI] = None
        self.is_configured: bool = False
        self.configuration_error: Optional[str] = None

        self._configure(api_key)

    def _configure(self, api_key: Optional[str] = None) -> None:
        key = api_key or getattr(settings, "OPENAI_API_KEY", None) or ""
        if not key:
            self.configuration_error = (
                "OPENAI_API_KEY is not configured; sessions will be scored by the fallback rules."
            )
            logger.warning(f"Oracle disabled: {self.configuration_error}")
            return

        try:
            # Retries would stretch the request past the timeout; fallback covers failures.
            self.client = OpenAI(api_key=key, max_retries=0, **self._client_kwargs)
        except Exception as e:
            self.configuration_error = f"OpenAI client could not be created: {e}"
            logger.error(f"Oracle disabled: {self.configuration_error}")
            return

        self.api_key = key
        self.is_configured = True
        logger.info(f"Oracle ready (model={self.model}, timeout={self.timeout}s)")

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def score_task(
        self,
        task_description: str,
        duration_minutes: int,
        tags: List[str],
    ) -> Dict[str, Any]:
        """
        XP for one session.

        Returns:
            {"score": int, "feedback": str}, or the failure contract.
        """
        label = f"task '{task_description[:40]}'"
        outcome = self._complete(
            self._build_task_messages(task_description, duration_minutes, tags), label
        )
        if "error_code" in outcome:
            return self._get_error_response("score", outcome)

        parsed = parse_score_response(outcome["content"])
        if isinstance(parsed, ParseError):
            logger.error(f"Oracle reply for {label} unusable: {parsed.reason}")
            return self._get_error_response(
                "score", {"error_code": "PARSE_ERROR", "error_message": parsed.reason}
            )

        logger.info(f"Oracle scored {label}: {parsed.score} pts")
        return {"score": parsed.score, "feedback": parsed.feedback}

    def score_week(
        self,
        entries: Iterable[Dict[str, Any]],
        user_name: str,
    ) -> Dict[str, Any]:
        """
        Coach rating (0-10) for a week of entries.

        Returns:
            {"rating": int, "feedback": str}, or the failure contract.
        """
        label = f"weekly review of '{user_name}'"
        outcome = self._complete(self._build_week_messages(list(entries), user_name), label)
        if "error_code" in outcome:
            return self._get_error_response("rating", outcome)

        parsed = parse_rating_response(outcome["content"])
        if isinstance(parsed, ParseError):
            logger.error(f"Oracle reply for {label} unusable: {parsed.reason}")
            return self._get_error_response(
                "rating", {"error_code": "PARSE_ERROR", "error_message": parsed.reason}
            )

        logger.info(f"Oracle rated {label}: {parsed.rating}/10")
        return {"rating": parsed.rating, "feedback": parsed.feedback}

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _complete(self, messages: List[Dict[str, str]], label: str) -> Dict[str, Any]:
        """One chat completion: {"content": str} or {"error_code", "error_message"}."""
        if not self.is_configured or self.client is None:
            logger.debug(f"Oracle skipped for {label}: {self.configuration_error}")
            return {
                "error_code": "SCORER_NOT_CONFIGURED",
                "error_message": self.configuration_error or "Oracle not available",
            }

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.DEFAULT_TEMPERATURE,
                max_tokens=self.DEFAULT_MAX_TOKENS,
                timeout=self.timeout,
            )
            content = response.choices[0].message.content or ""
            logger.debug(f"Oracle raw reply for {label}: {content[:200]}")
            return {"content": content}

        except AuthenticationError as e:
            logger.error(f"Oracle rejected the API key ({label}): {e}")
            return {"error_code": "AUTH_ERROR", "error_message": "Authentication with OpenAI failed"}

        except RateLimitError as e:
            logger.warning(f"Oracle rate limited ({label}): {e}")
            return {"error_code": "RATE_LIMIT", "error_message": "OpenAI rate limit reached"}

        # APITimeoutError subclasses APIConnectionError, so it goes first
        except APITimeoutError as e:
            logger.warning(f"Oracle timed out after {self.timeout}s ({label}): {e}")
            return {"error_code": "TIMEOUT", "error_message": "OpenAI request timed out"}

        except APIConnectionError as e:
            logger.error(f"Oracle unreachable ({label}): {e}")
            return {"error_code": "CONNECTION_ERROR", "error_message": "Could not reach OpenAI"}

        except BadRequestError as e:
            logger.error(f"Oracle refused the request ({label}): {e}")
            return {"error_code": "BAD_REQUEST", "error_message": "OpenAI rejected the request"}

        except APIStatusError as e:
            logger.error(f"Oracle returned HTTP {e.status_code} ({label}): {e}")
            return {
                "error_code": f"API_ERROR_{e.status_code}",
                "error_message": f"OpenAI answered with status {e.status_code}",
            }

        except Exception as e:
            logger.exception(f"Oracle call failed unexpectedly ({label}): {e}")
            return {
                "error_code": "UNEXPECTED_ERROR",
                "error_message": f"{type(e).__name__} while calling OpenAI",
            }

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _build_task_messages(
        self, description: str, duration: int, tags: List[str]
    ) -> List[Dict[str, str]]:
        """The rules mirror the fallback engine so both paths use one scale."""
        schema = json.dumps({"score": 120, "feedback": "string"})

        system_prompt = (
            "You are a strict productivity scoring engine. "
            "Your ONLY job is to award experience points (XP) for a logged work session.\n\n"
            "Scoring:\n"
            "1. Baseline is 0.6 XP per minute of the stated duration.\n"
            "2. Deep technical work (coding, debugging, DSA, system design, learning, writing) "
            "earns 1.2x to 1.4x the baseline.\n"
            "3. Planning, research and study earn the baseline; meetings, admin and email earn 0.8x.\n"
            "4. Sleep, naps, breaks, hangouts, travel and entertainment earn 0 XP.\n"
            "5. A very short description with a long duration still counts as deep work in that area.\n"
            f"6. The score must be an integer between 0 and {MAX_TASK_POINTS}.\n"
            "7. Feedback is ONE short, encouraging sentence (max 15 words).\n"
            f"Reply with JSON only, no markdown. Schema: {schema}"
        )

        user_content = (
            f"Task: {description}\n"
            f"Time Spent: {duration} minutes\n"
            f"Tags: {', '.join(tags) if tags else 'None'}"
        )

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]

    def _build_week_messages(
        self, entries: List[Dict[str, Any]], user_name: str
    ) -> List[Dict[str, str]]:
        schema = json.dumps({"rating": 7, "feedback": "string"})

        completed = [e for e in entries if e.get("status") == "completed"]
        total_points = sum(int(e.get("points") or 0) for e in completed)
        total_minutes = sum(int(e.get("duration") or 0) for e in entries)

        lines = []
        for e in entries:
            moment = e.get("completed_at") or e.get("created_at")
            day = moment.date().isoformat() if moment is not None else "unknown"
            tags = ", ".join(e.get("tags") or []) or "None"
            lines.append(
                f"- {day} | {e.get('status')} | {e.get('duration', 0)} min | "
                f"{e.get('points', 0)} XP | tags: {tags} | {e.get('task_description', '')}"
            )

        system_prompt = (
            "You are a supportive but honest productivity coach. "
            "Review one week of a user's logged work.\n\n"
            "Rate the week with an integer from 0 to 10, rewarding consistency "
            "across days as much as total volume. Feedback is 2-3 sentences: "
            "one strength, one concrete suggestion.\n"
            f"Reply with JSON only, no markdown. Schema: {schema}"
        )

        user_content = (
            f"User: {user_name or 'User'}\n"
            f"Entries logged: {len(entries)} ({len(completed)} completed)\n"
            f"Completed XP: {total_points}\n"
            f"Total minutes logged: {total_minutes}\n\n"
            "Entries:\n" + ("\n".join(lines) if lines else "- none")
        )

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ]

    def _get_error_response(self, value_key: str, error: Dict[str, Any]) -> Dict[str, Any]:
        """Failure contract; same keys as success so callers branch on `error_code` only."""
        return {
            value_key: None,
            "feedback": "",
            "error_code": error.get("error_code", "UNEXPECTED_ERROR"),
            "error_message": error.get("error_message", ""),
        }

    def health_check(self) -> Dict[str, Any]:
        return {
            "is_configured": self.is_configured,
            "model": self.model,
            "timeout": self.timeout,
            "configuration_error": self.configuration_error,
        }
