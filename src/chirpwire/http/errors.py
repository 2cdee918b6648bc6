"""Error classes for the HTTP layer of Chirpwire."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from chirpwire.errors import Error

__all__ = (
    "AuthorizationError",
    "ConnectivityError",
    "RateLimitExceededError",
    "RemoteError",
    "RemoteErrorDetail",
    "RemoteProtocolError",
    "RemoteUnstructuredError",
    "RequestTimeoutError",
)


@dataclass(frozen=True)
class RemoteErrorDetail:
    """A single (code, message) pair reported by the remote service."""

    code: Optional[int]
    message: str


class AuthorizationError(Error):
    """Error thrown when a request cannot be signed because the credentials
    are missing or malformed. No request is sent when this error is raised.
    """

    pass


class RemoteError(Error):
    """Base class for errors reported by the remote service in the form of
    a non-success HTTP status code.
    """

    status_code: int
    """The HTTP status code of the response."""

    body: str
    """The raw body of the response."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RemoteProtocolError(RemoteError):
    """Error thrown when the remote service returned a non-success status
    code together with a structured error payload.
    """

    errors: list[RemoteErrorDetail]
    """The list of errors found in the payload, in the order they appeared."""

    def __init__(
        self, status_code: int, errors: Sequence[RemoteErrorDetail], body: str = ""
    ):
        self.errors = list(errors)
        summary = "; ".join(
            detail.message
            if detail.code is None
            else "{0} (code {1})".format(detail.message, detail.code)
            for detail in self.errors
        )
        super().__init__(
            "Remote service returned HTTP {0}: {1}".format(status_code, summary),
            status_code,
            body,
        )

    @property
    def code(self) -> Optional[int]:
        """Returns the error code of the first reported error."""
        return self.errors[0].code if self.errors else None

    @property
    def message(self) -> Optional[str]:
        """Returns the message of the first reported error."""
        return self.errors[0].message if self.errors else None


class RateLimitExceededError(RemoteProtocolError):
    """Error thrown when the remote service signals that the client is being
    rate limited (HTTP 420 or 429).
    """

    reset_at: Optional[int]
    """UNIX timestamp when the current rate limit window resets, if the
    service told us.
    """

    def __init__(
        self,
        status_code: int,
        errors: Sequence[RemoteErrorDetail],
        body: str = "",
        reset_at: Optional[int] = None,
    ):
        super().__init__(status_code, errors, body)
        self.reset_at = reset_at


class RemoteUnstructuredError(RemoteError):
    """Error thrown when the remote service returned a non-success status
    code and a body that does not contain a recognizable error payload.
    """

    def __init__(self, status_code: int, body: str = ""):
        detail = body.strip() or "<empty body>"
        super().__init__(
            "Remote service returned HTTP {0}: {1}".format(status_code, detail),
            status_code,
            body,
        )


class ConnectivityError(Error):
    """Error thrown when the connection to the remote service failed or was
    dropped by the remote end.
    """

    pass


class RequestTimeoutError(ConnectivityError):
    """Error thrown when a bounded request did not complete within the
    configured timeout.
    """

    pass
