# worklog/ai_engine/fallback.py

import datetime
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Configure logging for rule-engine auditing
logger = logging.getLogger(__name__)

BASE_POINTS_PER_MINUTE = 0.6
MAX_TASK_POINTS = 400

WEEK_DAYS = 7
WEEKLY_POINTS_TARGET = 2100
VOLUME_WEIGHT = 5.0
CONSISTENCY_WEIGHT = 5.0

OFFLINE_MARKER = "AI Offline"


def round_half_up(value: float) -> int:
    """0.5 always rounds away from zero for positive values (345.6 -> 346, 28.5 -> 29)."""
    return int(math.floor(value + 0.5))


def coerce_duration(duration: Any) -> float:
    """Minutes as a finite non-negative number; anything unusable becomes 0."""
    try:
        minutes = float(duration)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(minutes) or math.isinf(minutes) or minutes < 0:
        return 0.0
    return minutes


def coerce_tags(tags: Any) -> List[str]:
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags]
    try:
        return [str(t).strip() for t in tags if t is not None and str(t).strip()]
    except TypeError:
        return []


class FallbackScoringEngine:
    """
    Deterministic scorer used whenever the oracle cannot answer.

    Per task: duration * 0.6 * complexity multiplier, capped at 400.
    Restricted activities (sleep, breaks, travel...) are checked first
    and always score 0: a restricted word anywhere inside the description
    (so "breaks" and "naps" count) or a tag equal to one. Otherwise the
    highest matching tier wins; tier tags match exactly and tier words match
    whole words in the description. All matching is case-insensitive.

    Per week: volume (points vs. 2100) plus consistency (active days of 7),
    each worth up to 5, rounded and clamped to 1..10.
    """

    RESTRICTED_KEYWORDS = [
        "sleep", "sleeping", "slept", "nap", "naps", "napping", "hangout",
        "hanging out", "break", "breaks", "travel", "travelled", "travelling",
        "traveling", "commute", "commuting",
        "gaming", "netflix", "tv", "rest", "party", "scrolling",
    ]

    # (multiplier, keywords), highest tier first
    COMPLEXITY_TIERS: List[Tuple[float, List[str]]] = [
        (1.4, ["dsa", "debugging", "debug", "system design", "algorithms", "algorithm"]),
        (1.2, ["coding", "code", "learning", "writing", "programming", "development"]),
        (1.0, ["planning", "research", "study", "studying", "reading", "review"]),
        (0.8, ["meeting", "meetings", "admin", "email", "emails", "call"]),
    ]

    DEFAULT_MULTIPLIER = 1.0

    WEEKLY_FEEDBACK = [
        (9, "Outstanding week! You stayed consistent and put in serious deep work."),
        (7, "Great week. Solid output across most days, keep the rhythm going."),
        (5, "Decent week. Try logging a little every day to build momentum."),
        (0, "A quiet week. Start small tomorrow: one focused session is enough."),
    ]

    def __init__(self) -> None:
        self._tier_patterns = [
            (multiplier, self._compile(words)) for multiplier, words in self.COMPLEXITY_TIERS
        ]

    @staticmethod
    def _compile(words: Iterable[str]) -> List[Tuple[str, "re.Pattern[str]"]]:
        return [
            (w, re.compile(r"(?<!\w)" + re.escape(w) + r"(?!\w)", re.IGNORECASE))
            for w in words
        ]

    # ------------------------------------------------------------------
    # Per-task scoring
    # ------------------------------------------------------------------

    def is_restricted(self, description: str, tags: List[str]) -> bool:
        lowered = description.lower()
        lowered_tags = {t.lower() for t in tags}
        return any(w in lowered or w in lowered_tags for w in self.RESTRICTED_KEYWORDS)

    def complexity_multiplier(self, description: Any, tags: Any) -> float:
        description = "" if description is None else str(description)
        tags = coerce_tags(tags)

        if self.is_restricted(description, tags):
            return 0.0

        lowered_tags = {t.lower() for t in tags}
        for multiplier, patterns in self._tier_patterns:
            for word, pattern in patterns:
                if word in lowered_tags or pattern.search(description):
                    return multiplier
        return self.DEFAULT_MULTIPLIER

    def score_task(self, description: Any, duration: Any, tags: Any) -> Dict[str, Any]:
        """
        Score a task without any network dependency.

        Returns:
            {"score": int, "feedback": str, "multiplier": float}
        """
        minutes = coerce_duration(duration)
        multiplier = self.complexity_multiplier(description, tags)

        raw = minutes * BASE_POINTS_PER_MINUTE * multiplier
        score = max(0, min(MAX_TASK_POINTS, round_half_up(raw)))

        if multiplier == 0.0:
            feedback = f"Logged as non-productive time ({OFFLINE_MARKER} - 0 pts)"
        else:
            feedback = f"Logged successfully ({OFFLINE_MARKER} - Est. Points)"

        logger.debug(
            f"Fallback score: {minutes:.0f} min x {multiplier} -> {score} pts"
        )
        return {"score": score, "feedback": feedback, "multiplier": multiplier}

    # ------------------------------------------------------------------
    # Weekly rating
    # ------------------------------------------------------------------

    def score_week(
        self,
        entries: Iterable[Dict[str, Any]],
        now: Optional[datetime.datetime] = None,
    ) -> Dict[str, Any]:
        """
        Rate the trailing 7 days.

        Each entry is a mapping with `points`, `status` and an activity
        timestamp (`completed_at`, falling back to `created_at`). Only
        completed entries inside the window count.
        """
        if now is None:
            now = datetime.datetime.now(datetime.timezone.utc)
        window_start = now - datetime.timedelta(days=WEEK_DAYS)

        total_points = 0
        active_days = set()
        for entry in entries or []:
            if entry.get("status") != "completed":
                continue
            moment = entry.get("completed_at") or entry.get("created_at")
            if moment is None or not (window_start <= moment <= now):
                continue
            try:
                points = max(0, int(entry.get("points") or 0))
            except (TypeError, ValueError):
                points = 0
            total_points += points
            active_days.add(moment.astimezone(datetime.timezone.utc).date())

        volume = min(total_points / float(WEEKLY_POINTS_TARGET), 1.0) * VOLUME_WEIGHT
        consistency = (min(len(active_days), WEEK_DAYS) / float(WEEK_DAYS)) * CONSISTENCY_WEIGHT
        rating = max(1, min(10, round_half_up(volume + consistency)))

        return {
            "rating": rating,
            "feedback": self.weekly_feedback(rating),
            "total_points": total_points,
            "active_days": len(active_days),
        }

    def weekly_feedback(self, rating: int) -> str:
        for threshold, message in self.WEEKLY_FEEDBACK:
            if rating >= threshold:
                return message
        return self.WEEKLY_FEEDBACK[-1][1]
