"""HTTP-level building blocks: request descriptions, response snapshots,
error classification and stream framing.
"""

from .classifier import raise_for_error
from .errors import (
    AuthorizationError,
    ConnectivityError,
    RateLimitExceededError,
    RemoteError,
    RemoteErrorDetail,
    RemoteProtocolError,
    RemoteUnstructuredError,
    RequestTimeoutError,
)
from .framing import LineFramer
from .request import Request
from .response import ResponseEnvelope

__all__ = (
    "AuthorizationError",
    "ConnectivityError",
    "LineFramer",
    "RateLimitExceededError",
    "RemoteError",
    "RemoteErrorDetail",
    "RemoteProtocolError",
    "RemoteUnstructuredError",
    "Request",
    "RequestTimeoutError",
    "ResponseEnvelope",
    "raise_for_error",
)
