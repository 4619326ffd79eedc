# worklog/validators.py
"""
Input checks run before any persistence call.

Each function returns the cleaned value or raises DRF's ValidationError
keyed by the offending field, so serializers and services share one set
of rules.
"""

from rest_framework.exceptions import ValidationError

from .models import TaskLog

# Storage bound of the duration column; the score cap handles long entries.
MAX_DURATION_MINUTES = 2147483647
MAX_TAGS = 20
MAX_TAG_LENGTH = 50


def validate_description(value):
    if value is None or not str(value).strip():
        raise ValidationError({"task_description": "Task description must not be empty."})
    return str(value).strip()


def validate_duration(value):
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError({"duration": "Duration must be a whole number of minutes."})
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError({"duration": "Duration must be a whole number of minutes."})
    if isinstance(value, float) and value != minutes:
        raise ValidationError({"duration": "Duration must be a whole number of minutes."})
    if minutes < 0:
        raise ValidationError({"duration": "Duration must not be negative."})
    if minutes > MAX_DURATION_MINUTES:
        raise ValidationError({"duration": f"Duration must be at most {MAX_DURATION_MINUTES} minutes."})
    return minutes


def validate_tags(value):
    """Strip, drop empties and duplicates (case-insensitive), keep first-seen order."""
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValidationError({"tags": "Tags must be a list of strings."})
    if len(value) > MAX_TAGS:
        raise ValidationError({"tags": f"At most {MAX_TAGS} tags are allowed."})

    cleaned, seen = [], set()
    for tag in value:
        if not isinstance(tag, str):
            raise ValidationError({"tags": "Tags must be a list of strings."})
        tag = tag.strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError({"tags": f"Tags must be at most {MAX_TAG_LENGTH} characters."})
        if tag.lower() in seen:
            continue
        seen.add(tag.lower())
        cleaned.append(tag)
    return cleaned


def validate_status_filter(value):
    if value in (None, ""):
        return None
    if value not in TaskLog.Status.values:
        raise ValidationError({"status": f"Status must be one of: {', '.join(TaskLog.Status.values)}."})
    return value


def validate_id_set(ids):
    """Non-empty collection of positive integer ids, de-duplicated."""
    if ids is None or isinstance(ids, (str, bytes)):
        raise ValidationError({"ids": "A non-empty list of task ids is required."})
    try:
        raw = list(ids)
    except TypeError:
        raise ValidationError({"ids": "A non-empty list of task ids is required."})
    if not raw:
        raise ValidationError({"ids": "A non-empty list of task ids is required."})

    cleaned = []
    for item in raw:
        if isinstance(item, bool):
            raise ValidationError({"ids": "Task ids must be integers."})
        try:
            pk = int(item)
        except (TypeError, ValueError):
            raise ValidationError({"ids": "Task ids must be integers."})
        if pk <= 0:
            raise ValidationError({"ids": "Task ids must be positive."})
        cleaned.append(pk)
    return sorted(set(cleaned))
