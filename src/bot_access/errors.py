"""
bot_access.errors

Domain error taxonomy for the access core.

Responsibilities:
- Name every failure the core can report (authn, authz, conflicts, config, reconciliation).
- Carry a stable machine-readable code, an HTTP status and structured details
  so the API layer can render a uniform error envelope.
"""

from __future__ import annotations

from typing import Any

from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class AccessError(Exception):
    code = "access_error"
    status_code = HTTP_500_INTERNAL_SERVER_ERROR
    retryable = False

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotAuthenticated(AccessError):
    code = "not_authenticated"
    status_code = HTTP_401_UNAUTHORIZED


class Forbidden(AccessError):
    code = "forbidden"
    status_code = HTTP_403_FORBIDDEN


class NotFound(AccessError):
    code = "not_found"
    status_code = HTTP_404_NOT_FOUND


class Conflict(AccessError):
    code = "conflict"
    status_code = HTTP_409_CONFLICT


class ClassificationUnavailable(AccessError):
    """Both superadmin checks (or the assignment read) failed; the caller gets no role."""

    code = "classification_unavailable"
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class ConfigurationError(AccessError):
    code = "configuration_error"
    status_code = HTTP_500_INTERNAL_SERVER_ERROR


class PartialReconciliation(AccessError):
    code = "partial_reconciliation"
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


class DataUnavailable(AccessError):
    # Data-layer failures unrelated to authorization decisions.
    code = "data_unavailable"
    status_code = HTTP_503_SERVICE_UNAVAILABLE
    retryable = True


# --- Module Notes -----------------------------------------------------------
# Routers never build error payloads by hand; `api.errors` maps these classes.
