"""Credential material used for signing requests."""

from dataclasses import dataclass
from typing import Optional

from chirpwire.http.errors import AuthorizationError

__all__ = ("Credentials",)


@dataclass(frozen=True)
class Credentials:
    """Dataclass that holds the OAuth consumer and access token pairs
    required to sign requests on behalf of a user.

    Instances are never modified by the executors; they are only read when
    a request is signed.
    """

    consumer_key: str
    consumer_secret: str
    access_token: Optional[str] = None
    access_token_secret: Optional[str] = None

    def validate(self) -> None:
        """Checks whether the credentials are complete enough to sign a
        request.

        Raises:
            AuthorizationError: if the consumer key or secret is missing, or
                if an access token is given without its secret
        """
        if not self.consumer_key or not self.consumer_key.strip():
            raise AuthorizationError("Consumer key is missing")
        if not self.consumer_secret or not self.consumer_secret.strip():
            raise AuthorizationError("Consumer secret is missing")
        if self.access_token and self.access_token_secret is None:
            raise AuthorizationError("Access token given without its secret")

    def __repr__(self) -> str:
        # Secrets are never shown in logs or tracebacks
        return "{0}(consumer_key={1!r}, access_token={2!r})".format(
            self.__class__.__name__, self.consumer_key, self.access_token
        )
