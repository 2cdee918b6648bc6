"""Executor that sends signed, single-shot HTTP requests."""

from __future__ import annotations

import logging

from typing import Iterable, Mapping, Optional
from urllib.parse import urlencode

import httpx

from chirpwire.auth import Credentials, OAuth1Signer, Signer
from chirpwire.http.classifier import raise_for_error
from chirpwire.http.errors import (
    AuthorizationError,
    ConnectivityError,
    RequestTimeoutError,
)
from chirpwire.http.request import Request, normalize_parameters
from chirpwire.http.response import ResponseEnvelope

from .config import ExecutorConfig

__all__ = ("RequestExecutor",)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

log = logging.getLogger(__name__)


class ExecutorBase:
    """Functionality shared by the bounded and the streaming executor:
    signing, common headers, diagnostics and client construction.
    """

    credentials: Credentials
    config: ExecutorConfig
    signer: Signer

    def __init__(
        self,
        credentials: Credentials,
        *,
        signer: Optional[Signer] = None,
        config: Optional[ExecutorConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Constructor.

        Parameters:
            credentials: the credentials to sign the requests with
            signer: the signer that produces the ``Authorization`` header.
                Defaults to an OAuth 1.0a signer.
            config: the settings of the executor
            transport: the httpx transport to send the requests with;
                ``None`` means the default network transport of httpx
        """
        self.credentials = credentials
        self.signer = signer or OAuth1Signer()
        self.config = config or ExecutorConfig()
        self._transport = transport

    def _create_client(self, timeout: Optional[float]) -> httpx.AsyncClient:
        """Creates a new client that is used for a single request only."""
        kwds = {"timeout": httpx.Timeout(timeout)}
        if self._transport is not None:
            kwds["transport"] = self._transport
        elif self.config.proxy:
            kwds["proxy"] = self.config.proxy
        return httpx.AsyncClient(**kwds)

    def _prepare_headers(
        self, method: str, url: str, parameters: Iterable[tuple[str, str]]
    ) -> dict[str, str]:
        """Signs a request and returns the headers to send with it.

        Raises:
            AuthorizationError: if there are no credentials or the signer
                rejected them
        """
        if self.credentials is None:
            raise AuthorizationError("No credentials to sign the request with")

        authorization = self.signer.sign(method, url, list(parameters), self.credentials)
        if not authorization:
            raise AuthorizationError("Signer returned an empty authorization token")

        return {"Authorization": authorization, "User-Agent": self.config.user_agent}

    def _write_log(self, target: str, label: str) -> None:
        log.debug("%s: %s", label, target)
        sink = self.config.log_sink
        if sink is not None:
            sink(target, label)


class RequestExecutor(ExecutorBase):
    """Sends signed GET and POST requests to the remote service and returns
    the bodies of successful responses.

    Each call uses its own client and connection, so calls may run
    concurrently. The envelope of the most recently completed call is kept
    in `last_response`; when calls run concurrently, it belongs to whichever
    call finished last.
    """

    _last_response: Optional[ResponseEnvelope]

    def __init__(self, *args, **kwds):
        super().__init__(*args, **kwds)
        self._last_response = None

    @property
    def last_response(self) -> Optional[ResponseEnvelope]:
        """The envelope of the most recently completed request."""
        return self._last_response

    @property
    def last_url(self) -> Optional[str]:
        """The resolved URL of the most recently completed request."""
        return self._last_response.url if self._last_response else None

    @property
    def response_headers(self) -> dict[str, str]:
        """The headers of the most recently completed request."""
        return dict(self._last_response.headers) if self._last_response else {}

    async def get(self, request: Request) -> str:
        """Sends a GET request and returns the body of the response.

        Parameters:
            request: the request to send. Its URL is fetched as is; its
                parameters are used for signing.

        Returns:
            the body of the response

        Raises:
            AuthorizationError: if the request could not be signed
            RemoteError: if the remote service reported an error
            ConnectivityError: if the request failed at the network level
        """
        self._write_log(request.url, "get")

        headers = self._prepare_headers("GET", request.url, request.parameters)
        envelope = await self._send("GET", request.url, headers=headers)
        return envelope.body

    async def post(
        self, url: str, form_parameters: Mapping[str, Optional[str]]
    ) -> str:
        """Sends a POST request with a form-encoded body and returns the body
        of the response. Parameters with a ``None`` value are left out.

        Raises:
            AuthorizationError: if the request could not be signed
            RemoteError: if the remote service reported an error
            ConnectivityError: if the request failed at the network level
        """
        self._write_log(url, "post")

        pairs = normalize_parameters(form_parameters)
        headers = self._prepare_headers("POST", url, pairs)
        headers["Content-Type"] = FORM_CONTENT_TYPE
        envelope = await self._send(
            "POST", url, headers=headers, content=urlencode(pairs).encode("ascii")
        )
        return envelope.body

    async def post_multipart(
        self,
        url: str,
        form_parameters: Mapping[str, Optional[str]],
        payload: bytes,
        field_name: str,
        file_name: str,
        content_type: str,
    ) -> str:
        """Sends a multipart POST request that uploads a binary payload
        together with some form parameters, and returns the body of the
        response.

        The signature covers the form parameters only; the binary payload is
        not part of the signed data.

        Parameters:
            url: the URL to upload to
            form_parameters: the text parameters to send along with the
                payload. Parameters with a ``None`` value are left out.
            payload: the binary payload to upload
            field_name: the name of the form field holding the payload
            file_name: the file name to report for the payload
            content_type: the MIME type of the payload

        Raises:
            AuthorizationError: if the request could not be signed
            RemoteError: if the remote service reported an error
            ConnectivityError: if the request failed at the network level
        """
        self._write_log(url, "post_multipart")

        pairs = normalize_parameters(form_parameters)
        headers = self._prepare_headers("POST", url, pairs)
        envelope = await self._send(
            "POST",
            url,
            headers=headers,
            data=dict(pairs),
            files={field_name: (file_name, payload, content_type)},
        )
        return envelope.body

    async def _send(self, method: str, url: str, **kwds) -> ResponseEnvelope:
        """Sends a request, records the envelope of its response and raises
        an exception if the remote service reported an error.

        Keyword arguments are passed on to `httpx.AsyncClient.build_request()`.
        """
        try:
            async with self._create_client(self.config.effective_timeout) as client:
                # build_request() attaches the timeout of the client
                response = await client.send(client.build_request(method, url, **kwds))
        except httpx.TimeoutException as ex:
            raise RequestTimeoutError(
                "Request to {0} timed out".format(url)
            ) from ex
        except httpx.RequestError as ex:
            raise ConnectivityError(
                "Request to {0} failed: {1}".format(url, ex)
            ) from ex

        envelope = ResponseEnvelope.from_response(response)
        self._last_response = envelope

        raise_for_error(envelope.status_code, envelope.body, envelope.headers)
        return envelope
