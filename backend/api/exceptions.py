# api/exceptions.py
"""
Error taxonomy shared by every app.

- NotFound / ValidationError: DRF's own classes (404 / 400).
- InvalidState: a lifecycle transition that is not allowed (400).
- PersistenceError: storage failure (500). Not retried by the backend.

Oracle failures and account-creation conflicts are recovered where they
happen and never reach this module.
"""

import logging

from django.db import DatabaseError
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, ValidationError
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

__all__ = [
    "InvalidState",
    "NotFound",
    "PersistenceError",
    "ValidationError",
    "exception_handler",
]


class InvalidState(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Operation not allowed in the current state.")
    default_code = "invalid_state"


class PersistenceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("Storage failure, please retry later.")
    default_code = "persistence_error"


def exception_handler(exc, context):
    """Route database failures to PersistenceError, everything else to DRF."""
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception(f"Persistence failure in {type(view).__name__}: {exc}")
        exc = PersistenceError()
    return drf_exception_handler(exc, context)
