"""Exception taxonomy shared by the relay layers."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every error raised by the relay."""


class ParseError(RelayError, ValueError):
    """Producer payload is not a well-formed log record."""


class FormatError(ParseError):
    """``submit`` rejected a payload; carries the raw frame for the error reply."""

    def __init__(self, payload: bytes, reason: str = "") -> None:
        self.payload = payload
        self.reason = reason
        super().__init__(reason or "Message did not abide by the proper format.")

    @property
    def payload_text(self) -> str:
        """Return the offending payload decoded leniently for echoing back."""

        return self.payload.decode("utf-8", errors="replace")


class TransportError(RelayError):
    """Read or write failure on a single connection."""


class UpgradeError(TransportError):
    """The WebSocket handshake failed before a session existed."""


__all__ = ["FormatError", "ParseError", "RelayError", "TransportError", "UpgradeError"]
