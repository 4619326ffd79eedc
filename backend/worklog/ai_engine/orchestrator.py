# worklog/ai_engine/orchestrator.py

import datetime
import logging
from typing import Any, Dict, Iterable, List, Optional

from .cache import AIScoringCache
from .external_scorer import ExternalAIScorer, ScorerUnavailableError
from .fallback import FallbackScoringEngine, coerce_duration, coerce_tags

# Configure logging for pipeline auditing
logger = logging.getLogger(__name__)

SCORING_METHOD_AI = "ai_scored"
SCORING_METHOD_CACHE = "cached"
SCORING_METHOD_FALLBACK = "fallback"


class ScoringOrchestrator:
    """
    The central coordination layer for productivity scoring.

    Task scoring runs cache -> oracle -> fallback; weekly reviews run
    oracle -> fallback. Neither path ever raises: the fallback engine is
    the last layer and answers every input.

    Task contract:
      {score, feedback, scoring_method, error_code}
    Weekly contract:
      {rating, feedback, scoring_method, error_code}
    """

    def __init__(self, skip_ai_init: bool = False, ai_service: Optional[ExternalAIScorer] = None):
        """
        Args:
            skip_ai_init: Build without an oracle client (tests, offline mode).
            ai_service: Pre-built scorer to use instead of a default one.
        """
        self.fallback_engine = FallbackScoringEngine()
        self.cache_manager = AIScoringCache()

        if ai_service is not None:
            self.ai_service = ai_service
        elif skip_ai_init:
            self.ai_service = None
        else:
            self.ai_service = ExternalAIScorer()

        self.ai_available = bool(self.ai_service is not None and self.ai_service.is_configured)

    # ------------------------------------------------------------------
    # Task scoring
    # ------------------------------------------------------------------

    def score_task(self, task_description: str, duration: Any, tags: Any) -> Dict[str, Any]:
        tags = coerce_tags(tags)
        minutes = int(coerce_duration(duration))

        if self.ai_available:
            try:
                result = self.cache_manager.get_or_set_score(
                    task_description=task_description,
                    duration=minutes,
                    tags=tags,
                    scoring_func=lambda: self._ai_task_score(task_description, minutes, tags),
                )
                method = SCORING_METHOD_CACHE if result["cached"] else SCORING_METHOD_AI
                return {
                    "score": int(result["score"]),
                    "feedback": result.get("feedback") or "Logged successfully",
                    "scoring_method": method,
                    "error_code": None,
                }
            except ScorerUnavailableError as e:
                logger.warning(f"Orchestrator: oracle unavailable ({e}); using fallback")
                error_code = str(e)
            except Exception as e:
                logger.exception(f"Orchestrator: pipeline failure for '{task_description[:40]}': {e}")
                error_code = "PIPELINE_ERROR"
        else:
            error_code = "SCORER_NOT_CONFIGURED"

        fallback = self.fallback_engine.score_task(task_description, minutes, tags)
        return {
            "score": fallback["score"],
            "feedback": fallback["feedback"],
            "scoring_method": SCORING_METHOD_FALLBACK,
            "error_code": error_code,
        }

    def _ai_task_score(self, task_description: str, duration: int, tags: List[str]) -> Dict[str, Any]:
        result = self.ai_service.score_task(task_description, duration, tags)
        if result.get("error_code") or result.get("score") is None:
            raise ScorerUnavailableError(result.get("error_code") or "EMPTY_RESULT")
        return {"score": result["score"], "feedback": result.get("feedback", "")}

    # ------------------------------------------------------------------
    # Weekly review
    # ------------------------------------------------------------------

    def score_week(
        self,
        entries: Iterable[Dict[str, Any]],
        user_name: str,
        now: Optional[datetime.datetime] = None,
    ) -> Dict[str, Any]:
        entries = list(entries)
        error_code = "SCORER_NOT_CONFIGURED"

        if self.ai_available:
            try:
                result = self.ai_service.score_week(entries, user_name)
                if not result.get("error_code") and result.get("rating") is not None:
                    return {
                        "rating": int(result["rating"]),
                        "feedback": result.get("feedback") or self.fallback_engine.weekly_feedback(result["rating"]),
                        "scoring_method": SCORING_METHOD_AI,
                        "error_code": None,
                    }
                error_code = result.get("error_code") or "EMPTY_RESULT"
                logger.warning(f"Orchestrator: weekly oracle unavailable ({error_code}); using fallback")
            except Exception as e:
                logger.exception(f"Orchestrator: weekly pipeline failure for '{user_name}': {e}")
                error_code = "PIPELINE_ERROR"

        fallback = self.fallback_engine.score_week(entries, now=now)
        return {
            "rating": fallback["rating"],
            "feedback": fallback["feedback"],
            "scoring_method": SCORING_METHOD_FALLBACK,
            "error_code": error_code,
        }

    def health_check(self) -> Dict[str, Any]:
        return {
            "orchestrator": "healthy",
            "fallback_engine": "healthy",
            "ai_available": self.ai_available,
            "ai_service": self.ai_service.health_check() if self.ai_service is not None else None,
        }
