"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs
on the admin API.

Security Considerations:
- Slugs are restricted to a URL-safe character set
- Only absolute http/https destinations are accepted
- Length limits prevent oversized rows
"""

import re
import secrets
from typing import Optional
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
MAX_SLUG_LENGTH = 50

SLUG_PATTERN = re.compile(r'^[0-9A-Za-z_-]+$')
SLUG_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Paths served by the app itself; a slug must not shadow them
RESERVED_SLUGS = frozenset({"api", "health", "docs", "redoc"})


def sanitize_slug(slug: str) -> Optional[str]:
    """
    Sanitize and validate slug format.
    
    Args:
        slug: The slug to sanitize
    
    Returns:
        Sanitized slug if valid, None otherwise
    """
    if not slug or not isinstance(slug, str):
        return None
    
    slug = slug.strip()
    
    if not slug or len(slug) > MAX_SLUG_LENGTH:
        return None
    
    if not SLUG_PATTERN.match(slug):
        return None
    
    if slug.lower() in RESERVED_SLUGS:
        return None
    
    return slug


def generate_slug(length: int = 5) -> str:
    """Random slug of uppercase letters and digits."""
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def is_valid_url(url: str) -> bool:
    """
    Validate URL format.
    
    Checks that URL is absolute, uses http/https and has a host.
    Prevents javascript:, file:, and other dangerous schemes.
    
    Args:
        url: The URL string to validate
    
    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False
    
    if len(url) > MAX_URL_LENGTH:
        return False
    
    try:
        result = urlparse(url)
    except ValueError:
        return False
    
    if result.scheme.lower() not in {'http', 'https'}:
        return False
    
    if not result.hostname:
        return False
    
    return True
