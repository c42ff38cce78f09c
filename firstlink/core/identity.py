"""
Visitor Identity Extraction

Derives a best-effort visitor identity from request headers for the
per-visitor first-use policy.

The headers are supplied by the client or by whatever proxies sit in
front of the service, so the identity can be spoofed. It approximates
"the same caller" for redirect purposes and is not an authentication
boundary.

Precedence (first present wins):
1. x-forwarded-for - the first hop in the list, trimmed
2. x-real-ip
3. cf-connecting-ip
4. the loopback sentinel 127.0.0.1
"""

from typing import Mapping

LOOPBACK_IDENTITY = "127.0.0.1"

# Matches the width of visits.visitor_ip
MAX_IDENTITY_LENGTH = 255


def extract_visitor_identity(headers: Mapping[str, str]) -> str:
    """
    Extract the visitor identity from request headers.

    Never fails: header names are matched case-insensitively, empty values
    count as absent, and the loopback sentinel is returned when nothing
    usable is present.

    Args:
        headers: Request headers (Starlette Headers or a plain mapping)

    Returns:
        Identity string, at most MAX_IDENTITY_LENGTH characters
    """
    lowered = {key.lower(): value for key, value in headers.items()}

    forwarded_for = lowered.get("x-forwarded-for")
    if forwarded_for:
        # Client-facing hop is the leftmost entry of the proxy chain
        client_hop = forwarded_for.split(",")[0].strip()
        if client_hop:
            return client_hop[:MAX_IDENTITY_LENGTH]

    for header in ("x-real-ip", "cf-connecting-ip"):
        value = lowered.get(header)
        if value:
            return value[:MAX_IDENTITY_LENGTH]

    return LOOPBACK_IDENTITY
