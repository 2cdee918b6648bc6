"""Request signers that produce the value of the ``Authorization`` header."""

from __future__ import annotations

import hmac

from abc import ABCMeta, abstractmethod
from base64 import b64encode
from hashlib import sha1
from time import time
from typing import Callable, Iterable, Optional
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit
from uuid import uuid4

from chirpwire.http.errors import AuthorizationError

from .credentials import Credentials

__all__ = ("OAuth1Signer", "Signer", "percent_encode", "signature_base_string")

DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: str) -> str:
    """Percent-encodes a string as required by RFC 5849, section 3.6."""
    return quote(value, safe="-._~")


def normalize_url(url: str) -> str:
    """Returns the base string URI of the given URL: lowercase scheme and
    host, no default port, no query string and no fragment.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if parts.port is not None and parts.port != DEFAULT_PORTS.get(scheme):
        host = "{0}:{1}".format(host, parts.port)
    return urlunsplit((scheme, host, parts.path or "/", "", ""))


def signature_base_string(
    method: str, url: str, parameters: Iterable[tuple[str, str]]
) -> str:
    """Constructs the OAuth signature base string.

    Parameters:
        method: the HTTP method of the request
        url: the URL of the request. Its query string is ignored; query
            parameters must be part of ``parameters``.
        parameters: all the parameters to sign, including the ``oauth_*``
            protocol parameters

    Returns:
        the signature base string
    """
    encoded = sorted(
        (percent_encode(name), percent_encode(value)) for name, value in parameters
    )
    normalized = "&".join("{0}={1}".format(name, value) for name, value in encoded)
    return "&".join(
        (
            method.upper(),
            percent_encode(normalize_url(url)),
            percent_encode(normalized),
        )
    )


class Signer(metaclass=ABCMeta):
    """Base class for request signers."""

    @abstractmethod
    def sign(
        self,
        method: str,
        url: str,
        parameters: Iterable[tuple[str, str]],
        credentials: Credentials,
    ) -> str:
        """Produces the value of the ``Authorization`` header for a single
        request.

        Implementations may embed a nonce or a timestamp in the result, so
        callers must not assume that repeated calls return the same token.

        Raises:
            AuthorizationError: if the request cannot be signed with the
                given credentials
        """
        raise NotImplementedError


class OAuth1Signer(Signer):
    """Signer implementing OAuth 1.0a with HMAC-SHA1 signatures."""

    def __init__(
        self,
        nonce_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Constructor.

        Parameters:
            nonce_factory: function that returns a fresh nonce for each
                request. Defaults to a random UUID in hex form.
            clock: function that returns the current UNIX timestamp.
                Defaults to ``time.time``.
        """
        self._nonce_factory = nonce_factory or (lambda: uuid4().hex)
        self._clock = clock or time

    def get_protocol_parameters(self, credentials: Credentials) -> dict[str, str]:
        """Returns the ``oauth_*`` parameters of a new request, without the
        signature.
        """
        result = {
            "oauth_consumer_key": credentials.consumer_key,
            "oauth_nonce": self._nonce_factory(),
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": str(int(self._clock())),
            "oauth_version": "1.0",
        }
        if credentials.access_token:
            result["oauth_token"] = credentials.access_token
        return result

    def sign(
        self,
        method: str,
        url: str,
        parameters: Iterable[tuple[str, str]],
        credentials: Credentials,
    ) -> str:
        if credentials is None:
            raise AuthorizationError("No credentials to sign the request with")

        credentials.validate()

        request_parameters = list(parameters)
        for pair in parse_qsl(urlsplit(url).query, keep_blank_values=True):
            if pair not in request_parameters:
                request_parameters.append(pair)

        oauth_parameters = self.get_protocol_parameters(credentials)
        base_string = signature_base_string(
            method, url, request_parameters + list(oauth_parameters.items())
        )

        key = "{0}&{1}".format(
            percent_encode(credentials.consumer_secret),
            percent_encode(credentials.access_token_secret or ""),
        )
        digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), sha1)
        oauth_parameters["oauth_signature"] = b64encode(digest.digest()).decode("ascii")

        return "OAuth " + ", ".join(
            '{0}="{1}"'.format(percent_encode(name), percent_encode(value))
            for name, value in sorted(oauth_parameters.items())
        )
