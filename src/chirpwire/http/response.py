"""Snapshot of a completed HTTP response."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx

__all__ = ("ResponseEnvelope",)


def join_headers(headers: httpx.Headers) -> dict[str, str]:
    """Converts a set of HTTP headers into a dictionary, joining the values
    of repeated headers with a comma. Keys keep their order of arrival.
    """
    return {
        key: ", ".join(headers.get_list(key))
        for key in headers.keys()
    }


@dataclass(frozen=True)
class ResponseEnvelope:
    """The resolved URL, headers and body of a single completed response."""

    url: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    @classmethod
    def from_response(cls, response: httpx.Response) -> ResponseEnvelope:
        """Creates an envelope from an httpx response whose body has already
        been read.
        """
        return cls(
            url=str(response.request.url),
            status_code=response.status_code,
            headers=join_headers(response.headers),
            body=response.text,
        )

    def getheader(self, header: str, default: Optional[str] = None) -> Optional[str]:
        """Returns the value of the given header, or the given default value
        if the header was not present in the response.
        """
        return self.headers.get(header.lower(), default)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
