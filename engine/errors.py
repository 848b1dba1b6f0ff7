"""
Exception hierarchy for the measurement engine.

Transport-level problems (failed connect, mid-flight error, unexpected close
code, idle peer) are ``TransportFailure`` subclasses so callers can treat
them uniformly.  ``ProtocolViolation`` covers frames the engine cannot make
sense of when they prevent a phase from reaching its result.
"""
from __future__ import annotations

from typing import Optional


class SpeedtestError(Exception):
    """Base class for every error raised by the engine."""


class TransportFailure(SpeedtestError):
    """The connection could not be established or failed mid-flight."""

    def __init__(self, message: str, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phase = phase


class AbnormalClosure(TransportFailure):
    """The peer closed with a code other than 1000/1001 before the result."""

    def __init__(self, code: int, phase: Optional[str] = None, reason: str = "") -> None:
        message = f"Connection closed unexpectedly: {code}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, phase=phase)
        self.code = code
        self.reason = reason


class IdleTimeout(TransportFailure):
    """No frame arrived within the idle window."""

    def __init__(self, timeout: float, phase: Optional[str] = None) -> None:
        super().__init__(f"No data received for {timeout:.1f} s", phase=phase)
        self.timeout = timeout


class ProtocolViolation(SpeedtestError):
    """A malformed or out-of-sequence frame prevented reaching a result."""

    def __init__(self, message: str, phase: Optional[str] = None) -> None:
        super().__init__(message)
        self.phase = phase


class ConnectionClosed(SpeedtestError):
    """Raised by a ``Connection`` when the peer has closed the channel."""

    def __init__(self, code: int, reason: str = "") -> None:
        super().__init__(f"closed with code {code}")
        self.code = code
        self.reason = reason


class SessionAborted(SpeedtestError):
    """The caller aborted a running session."""


class SessionBusy(SpeedtestError):
    """A session is already in flight on this engine instance."""
