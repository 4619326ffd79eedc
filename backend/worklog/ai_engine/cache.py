# worklog/ai_engine/cache.py

import hashlib
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)

KEY_PREFIX = "worklog_score"


class AIScoringCache:
    """
    Reuses oracle scores for sessions that were already scored.

    Two sessions share an entry when description, duration and tag set
    match after normalization (trimmed, lower-cased, tags sorted). Only
    successful oracle results are stored; a scoring function that raises
    leaves the cache untouched.

    The backing store is whatever Django's default cache is (Redis in
    production). Store outages are logged and treated as misses.
    """

    def __init__(self, ttl: int = 86400, version: str = "v1"):
        """
        Args:
            ttl: Seconds an entry lives; AI_CACHE_TTL overrides it.
            version: Bumped when the prompt changes so old scores are ignored.
        """
        self.ttl = getattr(settings, 'AI_CACHE_TTL', ttl)
        self.version = version

    def get_or_set_score(
        self,
        task_description: str,
        duration: int,
        tags: List[str],
        scoring_func: Callable[[], Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Return the stored score for this session, or compute and store it.

        Returns:
            The score dictionary plus a boolean `cached` flag.
        """
        key = self._generate_key(task_description, duration, tags)

        hit = self._read(key)
        if hit is not None:
            logger.debug(f"Score cache hit: {key}")
            return {**hit, "cached": True}

        logger.info(f"Score cache miss: {key}; asking the oracle")
        result = scoring_func()
        self._write(key, result)
        return {**result, "cached": False}

    def _read(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return cache.get(key)
        except Exception as e:
            logger.error(f"Score cache read failed for {key}: {e}")
            return None

    def _write(self, key: str, result: Dict[str, Any]) -> None:
        try:
            cache.set(key, result, timeout=self.ttl)
        except Exception as e:
            logger.error(f"Score cache write failed for {key}: {e}")

    def _generate_key(self, description: str, duration: int, tags: List[str]) -> str:
        """SHA256 over the normalized session; tag order never matters."""
        session = {
            "description": (description or "").strip().lower(),
            "duration": int(duration or 0),
            "tags": sorted(t.strip().lower() for t in tags or []),
            "version": self.version,
        }
        digest = hashlib.sha256(json.dumps(session, sort_keys=True).encode()).hexdigest()
        return f"{KEY_PREFIX}_{self.version}_{digest}"
