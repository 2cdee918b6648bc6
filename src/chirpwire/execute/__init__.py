"""Executors that send signed requests and run streaming connections.

Bounded calls go through `RequestExecutor`, long-lived streams through
`StreamExecutor`. Both sign every request with a `Signer` and turn error
responses into exceptions before the caller sees any body.
"""

from .config import ExecutorConfig
from .executor import RequestExecutor
from .stream import STREAM_CLOSED_MARKER, StreamExecutor, StreamMessage, StreamState

__all__ = (
    "ExecutorConfig",
    "RequestExecutor",
    "STREAM_CLOSED_MARKER",
    "StreamExecutor",
    "StreamMessage",
    "StreamState",
)
