"""Errors surfaced by the analysis boundary.

Failures of the remote narrative service and malformed narrative output are
not represented here: those stages return None and the run falls back to the
locally composed record.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for failures that end an analysis request."""

    status_code = 500
    message = "Analysis failed"

    def __init__(self, detail: str = "", message: Optional[str] = None) -> None:
        super().__init__(detail)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        """Error envelope: ``{error, detail?}``."""
        body = {'error': self.message}
        detail = str(self)
        if detail and detail != self.message:
            body['detail'] = detail
        return body


class InputError(AnalysisError, ValueError):
    """Missing or empty collection key, or an invalid payload."""

    status_code = 400
    message = "Missing keyword"


class CollectionNotFoundError(AnalysisError):
    """The collection resolved to zero documents."""

    status_code = 404
    message = "No data found for keyword"


class PersistenceError(AnalysisError):
    """Writing to storage failed."""

    status_code = 500
    message = "Failed to persist analysis"
