#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Custom exception classes and error handling utilities for the Shorts Slider backend.

Exceptions are used at the edges (transport failures, admin input, HTTP
responses). Expected pipeline outcomes such as an invalid playlist ID or an
empty playlist are returned as ``PlaylistResult`` values instead.
"""

from typing import Optional
from fastapi import HTTPException, status


# --- Base Exception Classes ---

class AppBaseError(Exception):
    """Base class for all application-specific exceptions.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        http_status_code: HTTP status code to use in API responses
        retry_after: Optional seconds to wait before retrying
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                 http_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
                 retry_after: Optional[int] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.http_status_code = http_status_code
        self.retry_after = retry_after
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        """Convert this exception to a FastAPI HTTPException.

        Returns:
            HTTPException: FastAPI exception with appropriate status and headers
        """
        headers = {"X-Error-Code": self.error_code}
        if self.retry_after:
            headers["Retry-After"] = str(self.retry_after)

        return HTTPException(
            status_code=self.http_status_code,
            detail=self.message,
            headers=headers
        )


class TransientError(AppBaseError):
    """Base class for errors that might clear up on a later request."""
    pass


# --- Specific Exceptions ---

class PlaylistFetchError(TransientError):
    """Raised by the playlist fetcher when no usable payload was obtained.

    Attributes:
        reason: One of ``client_error``, ``transport_error``, ``http_error``,
            ``empty_body``, ``malformed_json`` or ``missing_items``.
        status: HTTP status for ``http_error``, otherwise None.
    """

    def __init__(self, reason: str, message: str = "YouTube API request failed",
                 status_code: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="FETCH_FAILURE",
            http_status_code=status.HTTP_502_BAD_GATEWAY,
        )
        self.reason = reason
        self.status = status_code


class InvalidInputError(AppBaseError):
    """Raised when administrative input is invalid."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            http_status_code=status.HTTP_400_BAD_REQUEST
        )


class AdminAuthError(AppBaseError):
    """Raised when an administrative endpoint is called without a valid token."""

    def __init__(self, message: str = "Invalid or missing admin token"):
        super().__init__(
            message=message,
            error_code="ADMIN_AUTH_REQUIRED",
            http_status_code=status.HTTP_401_UNAUTHORIZED
        )


# --- Error Handling Utilities ---

def handle_exception(exception: Exception) -> HTTPException:
    """Convert any exception to an appropriate HTTPException.

    Args:
        exception: The exception to handle

    Returns:
        HTTPException: FastAPI exception with appropriate status and headers
    """
    if isinstance(exception, AppBaseError):
        return exception.to_http_exception()

    elif isinstance(exception, ValueError):
        return InvalidInputError(str(exception)).to_http_exception()

    elif isinstance(exception, HTTPException):
        return exception

    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {type(exception).__name__}",
            headers={"X-Error-Code": "INTERNAL_SERVER_ERROR"}
        )
