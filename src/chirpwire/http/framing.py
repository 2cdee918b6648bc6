"""Framer objects that split a continuous byte stream into discrete
messages.
"""

from abc import ABCMeta, abstractmethod

__all__ = ("Framer", "LineFramer")


class Framer(metaclass=ABCMeta):
    """Base class for framers."""

    @abstractmethod
    def feed(self, data: bytes) -> list[bytes]:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


class LineFramer(Framer):
    """Splits a byte stream into lines terminated by a delimiter (CRLF by
    default).

    Bytes that follow the last complete delimiter are kept in an internal
    buffer until the rest of the line arrives. Empty lines between two
    delimiters are returned as empty frames.
    """

    def __init__(self, delimiter: bytes = b"\r\n"):
        """Constructor.

        Parameters:
            delimiter: the byte sequence that terminates a frame
        """
        if not delimiter:
            raise ValueError("delimiter must not be empty")

        self._delimiter = bytes(delimiter)
        self.reset()

    @property
    def remainder(self) -> bytes:
        """Returns the bytes that were fed into the framer but do not form a
        complete frame yet.
        """
        return bytes(self._buffer)

    def feed(self, data: bytes) -> list[bytes]:
        """Feeds some bytes into the framer. Returns the frames completed by
        the new bytes, in the order they appear in the stream.

        Parameters:
            data: the bytes to feed into the framer

        Returns:
            the completed frames, without their delimiters
        """
        if not data:
            return []

        buf = self._buffer
        delimiter = self._delimiter

        # The buffer holds no complete delimiter before the new data, so it
        # is enough to scan from the last few bytes of the old content
        scan_from = max(0, len(buf) - len(delimiter) + 1)
        buf += data

        end = buf.rfind(delimiter, scan_from)
        if end < 0:
            return []

        frames = bytes(buf[:end]).split(delimiter)
        del buf[: end + len(delimiter)]
        return frames

    def reset(self) -> None:
        """Resets the framer to its ground state."""
        self._buffer = bytearray()
