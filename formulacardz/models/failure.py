"""
Failure classification for the client core.

Every operation of the core either returns its result or raises a subclass
of KnownError. The presentation layer catches KnownError, converts it with
`to_detail()`, and renders the message. Nothing raised here is fatal to the
process.

Error families:
- ValidationError: input rejected before any remote call
- AuthError: credentials rejected, or an operation attempted with no session
- NotFoundError: update/remove against a key that is not in the collection
- NetworkError: transport or server failure, surfaced verbatim, never retried
- StateError: an operation called in a state the caller should have gated
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    MISSING_REQUIRED = "missing_required"

    # Authentication failures
    AUTH_REJECTED = "auth_rejected"
    NOT_AUTHENTICATED = "not_authenticated"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_API_ERROR = "external_api_error"

    # Caller broke an ordering contract
    INVALID_STATE = "invalid_state"


class FailureDetail(BaseModel):
    """Detailed information about a failure, ready for display."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail for the presentation layer."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class ValidationError(KnownError):
    """Input rejected before any remote call was made."""

    def __init__(self, field: str, message: str, kind: FailureKind = FailureKind.INVALID_INPUT):
        self.field = field
        super().__init__(
            kind=kind,
            message=message,
            detail=f"field: {field}",
            suggestion="Correct the highlighted field and try again.",
        )


class AuthError(KnownError):
    """Credentials were rejected, or an operation needs a signed-in user."""

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        kind: FailureKind = FailureKind.AUTH_REJECTED,
    ):
        suggestion = (
            "Log in to continue."
            if kind == FailureKind.NOT_AUTHENTICATED
            else "Check your email and password and try again."
        )
        super().__init__(kind=kind, message=message, detail=detail, suggestion=suggestion)


class NotFoundError(KnownError):
    """An ownership record was addressed by a key the collection does not hold."""

    def __init__(self, card_id: str, parallel: str | None, condition: str):
        self.card_id = card_id
        self.parallel = parallel
        self.condition = condition
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message="That card is not in your collection.",
            detail=f"card={card_id} parallel={parallel or 'Base'} condition={condition}",
            suggestion="Reload your collection and try again.",
        )


class NetworkError(KnownError):
    """
    The remote call failed.

    `message` is the server's response text when it sent one, so it can be
    shown to the user verbatim.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None):
        self.status_code = status_code
        kind = (
            FailureKind.SERVICE_UNAVAILABLE
            if status_code is None or status_code >= 500
            else FailureKind.EXTERNAL_API_ERROR
        )
        super().__init__(
            kind=kind,
            message=message,
            detail=detail,
            suggestion="Please try again.",
        )


class StateError(KnownError):
    """An operation was called in a state the caller is expected to gate."""

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.INVALID_STATE, message=message)
