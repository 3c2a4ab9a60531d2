"""
Tests for the exceptions module.
"""
import unittest
import sys
import os
from fastapi import HTTPException

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from exceptions import (
    AdminAuthError, AppBaseError, InvalidInputError,
    PlaylistFetchError, TransientError, handle_exception
)


class TestAppBaseError(unittest.TestCase):
    """Test cases for the AppBaseError class."""

    def test_app_base_error_defaults(self):
        """Test the default values of AppBaseError."""
        error = AppBaseError("Test error")
        self.assertEqual(str(error), "Test error")
        self.assertEqual(error.error_code, "APPBASEERROR")
        self.assertEqual(error.http_status_code, 500)
        self.assertIsNone(error.retry_after)

    def test_to_http_exception_headers(self):
        """Retry-After is only set when retry_after is given."""
        exc = AppBaseError("Busy", error_code="BUSY", http_status_code=503, retry_after=30).to_http_exception()
        self.assertEqual(exc.status_code, 503)
        self.assertEqual(exc.headers["X-Error-Code"], "BUSY")
        self.assertEqual(exc.headers["Retry-After"], "30")

        exc = AppBaseError("Oops").to_http_exception()
        self.assertNotIn("Retry-After", exc.headers)


class TestSpecificErrors(unittest.TestCase):
    """Test cases for specific error classes."""

    def test_playlist_fetch_error(self):
        """Test PlaylistFetchError carries reason and status."""
        error = PlaylistFetchError("http_error", "YouTube API returned error code: 403", status_code=403)
        self.assertIsInstance(error, TransientError)
        self.assertEqual(error.reason, "http_error")
        self.assertEqual(error.status, 403)
        self.assertEqual(error.error_code, "FETCH_FAILURE")
        self.assertEqual(error.http_status_code, 502)

    def test_playlist_fetch_error_without_status(self):
        error = PlaylistFetchError("transport_error")
        self.assertIsNone(error.status)
        self.assertEqual(error.message, "YouTube API request failed")

    def test_invalid_input_error(self):
        """Test InvalidInputError."""
        error = InvalidInputError("Invalid input")
        self.assertEqual(error.error_code, "INVALID_INPUT")
        self.assertEqual(error.http_status_code, 400)

    def test_admin_auth_error(self):
        error = AdminAuthError()
        self.assertEqual(error.error_code, "ADMIN_AUTH_REQUIRED")
        self.assertEqual(error.http_status_code, 401)


class TestHandleException(unittest.TestCase):
    """Test cases for the handle_exception function."""

    def test_handle_app_base_error(self):
        exc = handle_exception(InvalidInputError("Bad key"))
        self.assertIsInstance(exc, HTTPException)
        self.assertEqual(exc.status_code, 400)
        self.assertEqual(exc.detail, "Bad key")

    def test_handle_value_error(self):
        exc = handle_exception(ValueError("Bad value"))
        self.assertEqual(exc.status_code, 400)
        self.assertEqual(exc.headers["X-Error-Code"], "INVALID_INPUT")

    def test_handle_http_exception(self):
        original = HTTPException(status_code=418, detail="Teapot")
        self.assertIs(handle_exception(original), original)

    def test_handle_generic_exception(self):
        exc = handle_exception(RuntimeError("boom"))
        self.assertEqual(exc.status_code, 500)
        self.assertEqual(exc.detail, "Internal server error: RuntimeError")
        self.assertEqual(exc.headers["X-Error-Code"], "INTERNAL_SERVER_ERROR")


if __name__ == '__main__':
    unittest.main()
