from __future__ import annotations

from typing import Any


class HttpError(Exception):
    """Application error carrying the HTTP status and machine-readable code sent to the client."""

    def __init__(self, status: int, code: str, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"HttpError(status={self.status}, code={self.code!r}, message={self.message!r})"
