class RateLimitPrefix:
    """
    Centralized registry of rate limit key prefixes.

    All rate limit keys follow the pattern: ratelimit:{category}:{identifier}
    where identifier is the client IP address.

    Example:
        ```python
        from edge_auth.core.constants import RateLimitPrefix

        key = f"{RateLimitPrefix.SENSITIVE}{ip_address}"
        # Result: "ratelimit:sensitive:192.168.1.1"
        ```
    """

    # Sensitive gateway prefixes (auth)
    SENSITIVE = "ratelimit:sensitive:"


class FieldSizes:
    # Common string lengths
    SHORT = 50
    MEDIUM = 128
    LONG = 255
    VERY_LONG = 1000

    # Specific field sizes
    EMAIL = LONG
    USERNAME = SHORT
    USERNAME_MIN = 3
    PASSWORD = MEDIUM
    PASSWORD_MIN = 6
    PASSWORD_HASH = VERY_LONG


class ResponseMessages:
    """Client-facing messages that existing clients match on."""

    TOO_MANY_REQUESTS = "Too many requests"
    # The trailing comma is part of the wire contract of the proxy error body
    PROXY_ERROR = "Internal server error,"
    INTERNAL_SERVER_ERROR = "Internal server error"
    USER_ALREADY_EXISTS = "User already exists"
    USER_REGISTERED = "User registered successfully!"


class TokenType:
    ACCESS = "access"
    REFRESH = "refresh"


# Headers that describe a single connection and must not be relayed by a proxy
# https://www.rfc-editor.org/rfc/rfc9110#section-7.6.1
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
