"""
Posting engine errors.

Every failure a posting can report to its caller is a
PostingError. Each subclass carries the HTTP status the API
layer answers with; the services themselves never import
FastAPI.
"""


class PostingError(Exception):
    """Base exception for all posting failures."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PostingValidationError(PostingError):
    """The request or the source document is not postable as-is."""


class AccountResolutionError(PostingError):
    """A required account is configured in neither mappings nor settings."""


class PeriodClosedError(PostingError):
    """No open accounting period covers the posting date."""


class UnbalancedJournalError(PostingError):
    """Debit and credit totals of a draft journal differ."""


class SourceNotFoundError(PostingError):
    """The business record to post does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id=None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message)
