"""Turns non-success HTTP responses into typed exceptions."""

from __future__ import annotations

import logging

from json import JSONDecodeError, loads
from typing import Any, Mapping, Optional

from .errors import (
    RateLimitExceededError,
    RemoteErrorDetail,
    RemoteProtocolError,
    RemoteUnstructuredError,
)

__all__ = ("parse_error_payload", "raise_for_error")

log = logging.getLogger(__name__)

RATE_LIMIT_STATUS_CODES = (420, 429)
"""HTTP status codes that the remote service uses to signal rate limiting.
420 is the legacy "Enhance Your Calm" code of the streaming endpoints.
"""


def _parse_code(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_error_payload(body: str) -> Optional[list[RemoteErrorDetail]]:
    """Parses a structured error payload from the body of a response.

    The following shapes are recognized::

        {"errors": [{"code": 88, "message": "Rate limit exceeded"}, ...]}
        {"errors": "Something went wrong"}
        {"error": "Something went wrong"}

    Parameters:
        body: the body of the response

    Returns:
        the list of errors found in the payload, or ``None`` if the body is
        not a recognized error payload
    """
    try:
        payload = loads(body)
    except (JSONDecodeError, TypeError):
        return None

    if not isinstance(payload, dict):
        return None

    errors = payload.get("errors")
    if isinstance(errors, list):
        result = [
            RemoteErrorDetail(
                code=_parse_code(item.get("code")),
                message=str(item.get("message", "")),
            )
            for item in errors
            if isinstance(item, dict)
        ]
        return result or None
    elif isinstance(errors, str):
        return [RemoteErrorDetail(code=None, message=errors)]

    error = payload.get("error")
    if isinstance(error, str):
        return [RemoteErrorDetail(code=None, message=error)]

    return None


def raise_for_error(
    status_code: int, body: str, headers: Optional[Mapping[str, str]] = None
) -> None:
    """Raises an appropriate exception if the given response parts describe
    a failed request; returns silently for 2xx responses.

    Parameters:
        status_code: the HTTP status code of the response
        body: the body of the response
        headers: the headers of the response; keys are expected to be
            lowercase

    Raises:
        RateLimitExceededError: when the service is rate limiting the client
            and the body contains a structured error payload
        RemoteProtocolError: when the body contains a structured error
            payload
        RemoteUnstructuredError: when the status code signals an error but
            the body is not a recognized error payload
    """
    if 200 <= status_code < 300:
        return

    errors = parse_error_payload(body)
    if errors is None:
        log.debug("Unstructured error response with HTTP status %d", status_code)
        raise RemoteUnstructuredError(status_code, body)

    if status_code in RATE_LIMIT_STATUS_CODES:
        reset_at = _parse_code((headers or {}).get("x-rate-limit-reset"))
        raise RateLimitExceededError(status_code, errors, body, reset_at=reset_at)

    raise RemoteProtocolError(status_code, errors, body)
