from typing import TypedDict


class TokenPairDict(TypedDict):
    """Internal token pair data passed between auth functions."""

    access_token: str
    refresh_token: str


class JWTPayloadDict(TypedDict, total=False):
    """JWT payload structure for encoding/decoding."""

    sub: str  # Subject (account ID)
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    type: str  # Token type: "access" or "refresh"
    jti: str  # JWT ID


class RateLimitInfoDict(TypedDict):
    """Rate limit information for headers."""

    limit: int
    remaining: int
    reset_time: int  # Unix timestamp when the current window ends
    retry_after: int  # Seconds until the current window ends
    window: int
