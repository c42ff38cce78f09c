"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Each exception carries the HTTP status and the public message it is
reported with, so handlers never need to inspect the underlying cause.
"""

from typing import Optional


class FirstLinkException(Exception):
    """Base exception for the redirect service."""

    status_code = 500
    public_message = "Internal server error"


class RedirectNotFoundError(FirstLinkException):
    """Raised when no redirect matches a slug or id."""

    status_code = 404
    public_message = "Redirect not found"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Redirect '{key}' not found")


class SlugConflictError(FirstLinkException):
    """Raised when a slug is already taken."""

    status_code = 409
    public_message = "Slug already exists"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' already exists")


class InvalidRedirectError(FirstLinkException):
    """Raised when redirect input fails validation."""

    status_code = 400

    def __init__(self, reason: str, value: Optional[str] = None):
        self.reason = reason
        self.value = value
        self.public_message = reason
        super().__init__(f"{reason}: {value}" if value is not None else reason)


class DatabaseError(FirstLinkException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
