"""Immutable description of a single API call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import urlencode, urlsplit, urlunsplit

__all__ = ("Request", "ParameterSource")

ParameterSource = Union[Mapping[str, Optional[str]], Iterable[tuple[str, Optional[str]]]]
"""Type of objects that may be used to specify the parameters of a request:
either a mapping or an iterable of name-value pairs.
"""


def normalize_parameters(parameters: Optional[ParameterSource]) -> tuple[tuple[str, str], ...]:
    """Converts a mapping or an iterable of name-value pairs into a tuple
    of name-value pairs, dropping parameters whose value is ``None``.
    """
    if parameters is None:
        return ()

    items = parameters.items() if isinstance(parameters, Mapping) else parameters
    return tuple((str(name), str(value)) for name, value in items if value is not None)


@dataclass(frozen=True)
class Request:
    """HTTP request description built by the query layer and consumed
    read-only by the executors.
    """

    url: str
    """The target URL of the request. For GET requests this is the URL that
    is fetched, including any query string.
    """

    parameters: tuple[tuple[str, str], ...] = field(default=())
    """The full set of request parameters, used for signing the request and
    as the form body of streaming requests.
    """

    method: str = "GET"
    """The HTTP method of the request."""

    def __post_init__(self):
        object.__setattr__(self, "parameters", normalize_parameters(self.parameters))
        object.__setattr__(self, "method", self.method.upper())

    @classmethod
    def build(
        cls,
        endpoint: str,
        parameters: Optional[ParameterSource] = None,
        method: str = "GET",
    ) -> Request:
        """Convenience constructor that appends the given parameters to the
        endpoint as a query string.

        Parameters:
            endpoint: the URL of the endpoint, without a query string
            parameters: the parameters of the request
            method: the HTTP method of the request

        Returns:
            the constructed request
        """
        pairs = normalize_parameters(parameters)
        url = "{0}?{1}".format(endpoint, urlencode(pairs)) if pairs else endpoint
        return cls(url=url, parameters=pairs, method=method)

    @property
    def endpoint(self) -> str:
        """Returns the URL of the request without its query string and
        fragment.
        """
        parts = urlsplit(self.url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

    def parameter_dict(self) -> dict[str, str]:
        """Returns the parameters of the request as a dictionary. When a
        parameter name appears multiple times, the last value wins.
        """
        return dict(self.parameters)
