"""Errors raised for failed service calls and bad responses."""

from __future__ import annotations

import json
from collections.abc import Mapping


class LogError(Exception):
    """An error reported by the log service."""

    def __init__(
        self,
        code: str = "",
        message: str = "",
        request_id: str = "",
        http_code: int = 0,
    ) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message
        self.request_id = request_id
        self.http_code = http_code

    def __str__(self) -> str:
        text = f"{self.code}: {self.message}" if self.code else self.message
        if self.request_id:
            text += f" (request id: {self.request_id})"
        return text

    @classmethod
    def from_body(cls, body: bytes | str, status_code: int) -> LogError:
        """Build the error described by a failed response body.

        A body that is not a JSON object yields a :class:`BadResponseError`.
        """
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        try:
            data = json.loads(text)
        except ValueError:
            return BadResponseError(text, status_code=status_code)
        if not isinstance(data, Mapping):
            return BadResponseError(text, status_code=status_code)
        request_id = data.get("requestId") or data.get("requestID") or ""
        return cls(
            code=str(data.get("errorCode") or ""),
            message=str(data.get("errorMessage") or ""),
            request_id=str(request_id),
            http_code=status_code,
        )


class ClientError(LogError):
    """A failure on the client side, wrapping the underlying exception."""

    def __init__(self, cause: BaseException | str) -> None:
        super().__init__("ClientError", str(cause))
        self.cause = cause


class BadResponseError(LogError):
    """A response whose body could not be understood."""

    def __init__(
        self,
        body: str,
        headers: Mapping[str, str] | None = None,
        status_code: int = 0,
    ) -> None:
        super().__init__("BadResponse", f"bad response body: {body}", http_code=status_code)
        self.body = body
        self.headers = dict(headers or {})
        self.status_code = status_code


class InvalidCompressError(ValueError):
    """An unsupported compression type was requested."""

    def __init__(self, message: str = "invalid compress type") -> None:
        super().__init__(message)