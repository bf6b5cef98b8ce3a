# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
#
# This source code is licensed under the terms described in the LICENSE file in
# the root directory of this source tree.

# Custom Langbase exception classes should follow the following schema
#   1. All classes should inherit from LangbaseError, and from a built-in exception class where one fits
#   2. All classes should have a custom error message that tells the SDK user what went wrong
#   3. All classes should propagate the inherited __init__ function via 'super().__init__(message)'

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import httpx


class LangbaseError(Exception, ABC):
    """A Langbase SDK error carrying the HTTP status it corresponds to"""

    @property
    @abstractmethod
    def status_code(self) -> httpx.codes:
        """The HTTP status code for this exception"""
        ...


def format_filter_path(path: Sequence[int]) -> str:
    if not path:
        return "root"
    return "path " + ".".join(str(index) for index in path)


class FilterValidationError(ValueError, LangbaseError):
    """raised when caller input cannot be turned into a filter expression

    `path` holds the child indices leading from the root combinator to the
    offending node; it is empty when the root itself is at fault.
    """

    def __init__(self, path: Sequence[int], reason: str) -> None:
        self.path = tuple(path)
        self.reason = reason
        super().__init__(f"Invalid filter at {format_filter_path(self.path)}: {reason}")

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.BAD_REQUEST


class FilterDepthExceededError(FilterValidationError):
    """raised when a filter nests deeper than the configured limit"""

    def __init__(self, limit: int, path: Sequence[int]) -> None:
        self.limit = limit
        super().__init__(path, f"filter nesting exceeds the maximum depth of {limit}")


class ConfigurationError(ValueError, LangbaseError):
    """raised when the client configuration is missing or malformed"""

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.BAD_REQUEST


class APIError(LangbaseError):
    """raised when the Langbase API answers with an error status"""

    def __init__(
        self,
        status: int | None,
        error: Any,
        message: str | None,
        headers: Mapping[str, str] | None,
    ) -> None:
        self.status = status
        self.error = error
        self.headers = dict(headers or {})
        self.request_id = self.headers.get("lb-request-id")
        self.code = _error_code(error)
        super().__init__(self._make_message(status, error, message))

    @staticmethod
    def _make_message(status: int | None, error: Any, message: str | None) -> str:
        error_message = error.get("message") if isinstance(error, dict) else None
        if error_message is not None and not isinstance(error_message, str):
            msg = json.dumps(error_message, separators=(",", ":"))
        elif message:
            msg = message
        elif isinstance(error_message, str):
            msg = error_message
        elif error:
            msg = json.dumps(error, separators=(",", ":"), default=str)
        else:
            msg = None

        if status and msg:
            return f"{status} {msg}"
        if status:
            return f"{status} status code (no body)"
        if msg:
            return msg
        return "(no status code or body)"

    @property
    def status_code(self) -> httpx.codes:
        if self.status is None:
            return httpx.codes.BAD_GATEWAY
        try:
            return httpx.codes(self.status)
        except ValueError:
            return httpx.codes.INTERNAL_SERVER_ERROR

    @classmethod
    def generate(
        cls,
        status: int | None,
        error: Any,
        message: str | None,
        headers: Mapping[str, str] | None,
    ) -> "APIError":
        if status is None:
            return APIConnectionError(cause=error if isinstance(error, BaseException) else None)

        error_cls = STATUS_ERRORS.get(status)
        if error_cls is None:
            error_cls = InternalServerError if status >= 500 else APIError
        return error_cls(status, error, message, headers)


def _error_code(error: Any) -> str | None:
    if not isinstance(error, dict):
        return None
    if isinstance(error.get("code"), str):
        return error["code"]
    nested = error.get("error")
    if isinstance(nested, dict) and isinstance(nested.get("code"), str):
        return nested["code"]
    return None


class APIConnectionError(APIError):
    """raised when the Langbase API cannot be reached"""

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(None, None, message or "Connection error.", None)
        self.__cause__ = cause


class APIConnectionTimeoutError(APIConnectionError):
    """raised when a request to the Langbase API times out"""

    def __init__(self, message: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message or "Request timed out.", cause)

    @property
    def status_code(self) -> httpx.codes:
        return httpx.codes.GATEWAY_TIMEOUT


class BadRequestError(APIError):
    """raised on a 400 response"""


class AuthenticationError(APIError):
    """raised on a 401 response, usually a missing or invalid API key"""


class PermissionDeniedError(APIError):
    """raised on a 403 response"""


class NotFoundError(APIError):
    """raised on a 404 response, e.g. an unknown memory name"""


class ConflictError(APIError):
    """raised on a 409 response"""


class UnprocessableEntityError(APIError):
    """raised on a 422 response"""


class RateLimitError(APIError):
    """raised on a 429 response"""


class InternalServerError(APIError):
    """raised on any 5xx response"""


STATUS_ERRORS: dict[int, type[APIError]] = {
    httpx.codes.BAD_REQUEST: BadRequestError,
    httpx.codes.UNAUTHORIZED: AuthenticationError,
    httpx.codes.FORBIDDEN: PermissionDeniedError,
    httpx.codes.NOT_FOUND: NotFoundError,
    httpx.codes.CONFLICT: ConflictError,
    httpx.codes.UNPROCESSABLE_ENTITY: UnprocessableEntityError,
    httpx.codes.TOO_MANY_REQUESTS: RateLimitError,
}
