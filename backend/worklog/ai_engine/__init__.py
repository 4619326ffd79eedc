# worklog/ai_engine/__init__.py
"""
AI Engine Package
=================

Scoring logic for the productivity tracker: turns a logged work session
(description, duration, tags) into XP, and a week of sessions into a
0-10 coach rating.

Modules:
--------
- orchestrator: Central coordination layer for the scoring pipeline
- external_scorer: OpenAI API integration (the scoring oracle)
- fallback: Deterministic rule-based scorer, used whenever the oracle fails
- cache: Redis-backed caching layer for oracle responses

Architecture:
-------------
All scoring flows through the ScoringOrchestrator. Task scoring tries
the cache, then the oracle, then the fallback engine; weekly reviews
try the oracle, then the fallback engine. The orchestrator always
returns a complete contract:

    {
        "score": int,            # or "rating" for weekly reviews
        "feedback": str,
        "scoring_method": str,
        "error_code": str | None
    }

Scoring Methods:
----------------
- "cached": Retrieved from the Redis cache
- "ai_scored": Fresh oracle scoring via OpenAI
- "fallback": Deterministic rules (oracle unavailable, timed out or unparsable)

Usage:
------
    from worklog.ai_engine import ScoringOrchestrator

    orchestrator = ScoringOrchestrator()
    result = orchestrator.score_task(
        task_description="Refactor the billing module",
        duration=90,
        tags=["Coding"],
    )
"""

from .cache import AIScoringCache
from .external_scorer import (
    ExternalAIScorer,
    ParsedRating,
    ParsedScore,
    ParseError,
    ScorerUnavailableError,
)
from .fallback import FallbackScoringEngine
from .orchestrator import (
    SCORING_METHOD_AI,
    SCORING_METHOD_CACHE,
    SCORING_METHOD_FALLBACK,
    ScoringOrchestrator,
)

__all__ = [
    # Core classes
    "ScoringOrchestrator",
    "ExternalAIScorer",
    "FallbackScoringEngine",
    "AIScoringCache",
    # Parse results
    "ParsedScore",
    "ParsedRating",
    "ParseError",
    # Exceptions
    "ScorerUnavailableError",
    # Constants
    "SCORING_METHOD_AI",
    "SCORING_METHOD_CACHE",
    "SCORING_METHOD_FALLBACK",
]
