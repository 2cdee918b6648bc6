"""Executor that keeps a long-lived streaming connection open and feeds the
messages received on it to a callback.
"""

from __future__ import annotations

import logging

from dataclasses import dataclass, field
from enum import Enum
from inspect import isawaitable
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlencode

import httpx

from trio import CancelScope

from chirpwire.http.classifier import raise_for_error
from chirpwire.http.errors import ConnectivityError
from chirpwire.http.framing import LineFramer
from chirpwire.http.request import Request
from chirpwire.http.response import join_headers

from .executor import FORM_CONTENT_TYPE, ExecutorBase

__all__ = (
    "STREAM_CLOSED_MARKER",
    "StreamCallback",
    "StreamExecutor",
    "StreamMessage",
    "StreamState",
)

STREAM_CLOSED_MARKER = "<streaming></streaming>"
"""Value returned by `StreamExecutor.stream()` when the stream was closed
on request. The messages themselves are delivered to the callback.
"""

DEFAULT_CHUNK_SIZE = 4096
"""Maximum number of bytes handed to the framer in one step."""

log = logging.getLogger(__name__)


class StreamState(Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    STREAMING = "STREAMING"
    CLOSING = "CLOSING"


@dataclass(frozen=True)
class StreamMessage:
    """A single message received on a stream."""

    content: str
    """The text of the message, without the line terminator. Keep-alive
    messages have an empty content.
    """

    executor: StreamExecutor = field(repr=False, compare=False)
    """The executor that received the message."""

    @property
    def is_keepalive(self) -> bool:
        return not self.content

    def request_stop(self) -> None:
        """Closes the stream that this message was received on."""
        self.executor.request_stop()


StreamCallback = Callable[[StreamMessage], Union[Awaitable[Any], Any]]


class StreamExecutor(ExecutorBase):
    """Opens a single long-lived POST request and calls a callback for every
    CRLF-terminated line received in the response body.

    The stream runs until `request_stop()` is called or until the remote
    end drops the connection. Callbacks are invoked sequentially in the
    order the messages arrived; a callback that blocks stalls the stream.
    """

    callback: StreamCallback
    chunk_size: int

    _cancel_scope: Optional[CancelScope]
    _closed: bool
    _state: StreamState

    def __init__(
        self,
        *args,
        callback: StreamCallback,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        **kwds,
    ):
        """Constructor.

        Parameters:
            callback: function to call with each received message. It may
                be a coroutine function.
            chunk_size: the maximum number of received bytes to process in
                one step

        See `ExecutorBase` for the remaining parameters.
        """
        super().__init__(*args, **kwds)

        if chunk_size <= 0:
            raise ValueError("chunk size must be positive")

        self.callback = callback
        self.chunk_size = chunk_size

        self._cancel_scope = None
        self._closed = False
        self._state = StreamState.IDLE

    @property
    def is_closed(self) -> bool:
        """Whether the stream was asked to close."""
        return self._closed

    @property
    def state(self) -> StreamState:
        return self._state

    def request_stop(self) -> None:
        """Asks the running stream to close and cancels any pending network
        operation of it. Does nothing when no stream is running.

        Must be called from the Trio thread that runs the stream; use
        ``trio.from_thread.run_sync()`` from other threads.
        """
        if self._state is StreamState.IDLE:
            return

        log.debug("Stream close requested")
        self._closed = True
        self._state = StreamState.CLOSING
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def stream(self, request: Request) -> str:
        """Opens the stream described by the given request and delivers the
        received messages to the callback until the stream is closed.

        Parameters:
            request: the request describing the stream. Its parameters are
                sent as a form-encoded body to the endpoint of the request
                and are the only parameters that are signed; the query
                string of its URL is not sent.

        Returns:
            `STREAM_CLOSED_MARKER` when the stream was closed on request

        Raises:
            AuthorizationError: if the request could not be signed
            RemoteError: if the remote service refused to open the stream
            ConnectivityError: if the connection failed or the remote end
                closed it
        """
        if self._state is not StreamState.IDLE:
            raise RuntimeError("A stream is already running on this executor")

        self._write_log(request.url, "stream")

        self._closed = False
        self._state = StreamState.CONNECTING
        try:
            with CancelScope() as self._cancel_scope:
                await self._run(request)
        finally:
            self._cancel_scope = None
            self._closed = False
            self._state = StreamState.IDLE

        return STREAM_CLOSED_MARKER

    async def _run(self, request: Request) -> None:
        # Sign exactly what is sent: the endpoint and the form parameters
        headers = self._prepare_headers("POST", request.endpoint, request.parameters)
        headers["Content-Type"] = FORM_CONTENT_TYPE

        async with self._create_client(None) as client:
            http_request = client.build_request(
                "POST",
                request.endpoint,
                headers=headers,
                content=urlencode(request.parameters).encode("ascii"),
            )

            try:
                response = await client.send(http_request, stream=True)
            except httpx.RequestError as ex:
                raise ConnectivityError(
                    "Could not open stream to {0}: {1}".format(request.endpoint, ex)
                ) from ex

            try:
                if not response.is_success:
                    try:
                        await response.aread()
                    except httpx.RequestError as ex:
                        raise ConnectivityError(
                            "Could not read error response of {0}: {1}".format(
                                request.endpoint, ex
                            )
                        ) from ex

                    raise_for_error(
                        response.status_code,
                        response.text,
                        join_headers(response.headers),
                    )

                if self._closed:
                    return

                self._state = StreamState.STREAMING
                log.info("Stream to %s opened", request.endpoint)

                await self._read_messages(response)
            finally:
                await response.aclose()

    async def _read_messages(self, response: httpx.Response) -> None:
        framer = LineFramer()
        encoding = response.charset_encoding or "utf-8"
        chunk_size = self.chunk_size

        try:
            async for data in response.aiter_bytes():
                # Decompressed chunks may be arbitrarily large, so they are
                # fed to the framer in pieces of at most chunk_size bytes
                view = memoryview(data)
                for start in range(0, len(view), chunk_size):
                    for frame in framer.feed(view[start : start + chunk_size]):
                        if self._closed:
                            return
                        await self._deliver(frame.decode(encoding, errors="replace"))
                    if self._closed:
                        return
        except httpx.RequestError as ex:
            if self._closed:
                return
            raise ConnectivityError("Stream failed: {0}".format(ex)) from ex

        if not self._closed:
            self._closed = True
            log.warning("Stream closed by the remote end")
            raise ConnectivityError("Remote end closed the stream")

    async def _deliver(self, content: str) -> None:
        result = self.callback(StreamMessage(content=content, executor=self))
        if isawaitable(result):
            await result
