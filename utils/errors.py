"""
Error taxonomy for Direct Line requests.

Every failed call is reduced to one of three kinds (transport, payload or
application) and raised as :class:`DirectLineError`. The session layer treats
all three the same way: log and move on.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    """
    Categorisation of Direct Line request failures.

    Using :class:`str` keeps the values readable in log lines and comparable
    with plain strings.
    """

    NONE = "none"
    TRANSPORT = "transport"
    PAYLOAD = "payload"
    APPLICATION = "application"


class DirectLineError(Exception):
    """Raised by :class:`~utils.direct_line_client.DirectLineClient` on any failure."""

    def __init__(
            self,
            error_type: ErrorType,
            message: str,
            status_code: Optional[int] = None,
            details: Any = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"{self.error_type.value} error{status}: {self.message}"


# ──────────────────────────────────────────────────────────────
# Public detection API
# ──────────────────────────────────────────────────────────────


def detect_error(data: Any, status_code: Optional[int] = None) -> ErrorType:
    """
    Classify a decoded response body.

    Heuristics
    ----------
    * Anything that is not a JSON object → :pydata:`ErrorType.PAYLOAD`
    * An object carrying a truthy ``error`` field → :pydata:`ErrorType.APPLICATION`
    * A non-2xx *status_code* → :pydata:`ErrorType.APPLICATION`
    * Otherwise → :pydata:`ErrorType.NONE`
    """
    if not isinstance(data, dict):
        return ErrorType.PAYLOAD

    if data.get("error"):
        return ErrorType.APPLICATION

    if status_code is not None and not 200 <= status_code < 300:
        return ErrorType.APPLICATION

    return ErrorType.NONE


def error_message(data: Any) -> str:
    """Extract a human-readable message from an ``error`` field."""
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        code = err.get("code")
        text = err.get("message") or ""
        return f"{code}: {text}" if code else text or str(err)
    if err:
        return str(err)
    return "request failed"
