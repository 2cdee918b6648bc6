"""Credentials and request signing."""

from .credentials import Credentials
from .signer import OAuth1Signer, Signer

__all__ = ("Credentials", "OAuth1Signer", "Signer")
