"""Configuration of the request and stream executors."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional

from chirpwire.version import __version__

__all__ = ("DEFAULT_TIMEOUT", "DEFAULT_USER_AGENT", "ExecutorConfig", "LogSink")

DEFAULT_USER_AGENT = "chirpwire/{0}".format(__version__)
"""User agent sent with every request unless overridden."""

DEFAULT_TIMEOUT = 100.0
"""Default timeout of bounded requests, in seconds."""

LogSink = Callable[[str, str], None]
"""Type of diagnostic hooks; called with the request target and a label
naming the operation before every network call.
"""


@dataclass(frozen=True)
class ExecutorConfig:
    """Dataclass that holds the settings shared by all requests of an
    executor.
    """

    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    """Timeout of bounded requests in seconds; zero means no timeout.
    Streaming requests never time out.
    """

    proxy: Optional[str] = None
    log_sink: Optional[LogSink] = None

    def __post_init__(self):
        if self.timeout < 0:
            raise ValueError("timeout must not be negative")

    def with_user_agent(self, value: Optional[str]) -> ExecutorConfig:
        """Returns a copy of this configuration where the given product
        token is prepended to the current user agent. Blank values leave the
        user agent unchanged.
        """
        if value is None or not value.strip():
            return self
        return replace(self, user_agent="{0}, {1}".format(value, self.user_agent))

    @property
    def effective_timeout(self) -> Optional[float]:
        """Returns the timeout in the form expected by httpx, i.e. ``None``
        when there is no timeout.
        """
        return self.timeout if self.timeout > 0 else None
