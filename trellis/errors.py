"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``trellis.main`` maps them to status codes so route
functions never translate errors by hand.
"""
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """Base class for errors that are reported to the caller."""

    status_code: int = 500

    def __init__(self, message: str, issues: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.issues = issues

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message}
        if self.issues:
            body["issues"] = self.issues
        return body


class InvalidRequest(StoreError):
    """Malformed or out-of-range input (400)."""
    status_code = 400


class AuthRequired(StoreError):
    """Operation needs an authenticated identity (401)."""
    status_code = 401


class NotFound(StoreError):
    """Missing product, line item, favorite, order (404)."""
    status_code = 404


class ServiceUnavailable(StoreError):
    status_code = 503


class ProviderError(Exception):
    """
    The AI provider failed (network, timeout, quota, malformed reply).

    Never reaches the HTTP layer: the AI services convert it into a degraded
    response.
    """
