import uuid
from datetime import UTC, datetime, timedelta
from typing import Callable

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTError
from loguru import logger

from edge_auth.core.config import settings
from edge_auth.core.constants import TokenType
from edge_auth.core.exceptions.token import TokenDecodeError, TokenSigningError
from edge_auth.core.types import JWTPayloadDict, TokenPairDict
from edge_auth.schemas import TokenData


def utc_now() -> datetime:
    return datetime.now(UTC)


class TokenIssuer:
    """
    Signs access and refresh tokens bound to an account id.

    Stateless: nothing is stored per issued pair, so the same key and clock
    always produce equivalent tokens.

    Example:
        ```python
        issuer = TokenIssuer(secret_key="...", access_ttl=3600, refresh_ttl=604800)
        tokens = issuer.issue(user.id)
        ```
    """

    def __init__(
        self,
        secret_key: str | None,
        access_ttl: int,
        refresh_ttl: int,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.secret_key = secret_key
        self.access_ttl = timedelta(seconds=access_ttl)
        self.refresh_ttl = timedelta(seconds=refresh_ttl)
        self.algorithm = algorithm
        self.clock = clock

    def _sign(self, account_id: str, token_type: str, issued_at: datetime, ttl: timedelta) -> str:
        if not self.secret_key:
            raise TokenSigningError("Token signing key is not configured")

        payload = JWTPayloadDict(
            sub=account_id,
            iat=int(issued_at.timestamp()),
            exp=int((issued_at + ttl).timestamp()),
            type=token_type,
            jti=uuid.uuid4().hex,
        )

        try:
            return jwt.encode(dict(payload), self.secret_key, algorithm=self.algorithm)
        except JOSEError as e:
            raise TokenSigningError(f"Failed to sign {token_type} token", exception=e)

    def issue(self, account_id: str | int | uuid.UUID) -> TokenPairDict:
        """
        Create an access/refresh token pair for an account.

        Args:
            account_id: The account the tokens are bound to.

        Returns:
            TokenPairDict with both encoded tokens.

        Raises:
            TokenSigningError: If the key is missing or signing fails.
        """
        issued_at = self.clock()
        subject = str(account_id)

        access_token = self._sign(subject, TokenType.ACCESS, issued_at, self.access_ttl)
        refresh_token = self._sign(subject, TokenType.REFRESH, issued_at, self.refresh_ttl)
        logger.debug(f"Issued token pair for account {subject}")

        return TokenPairDict(access_token=access_token, refresh_token=refresh_token)

    def decode(self, token: str, expected_type: str | None = None) -> TokenData:
        """
        Verify a token's signature and expiry and return its claims.

        Args:
            token: The encoded JWT.
            expected_type: "access" or "refresh" to also enforce the token type.

        Returns:
            TokenData with the decoded claims.

        Raises:
            TokenDecodeError: If the token is expired, forged or of the wrong type.
        """
        if not self.secret_key:
            raise TokenDecodeError("Token signing key is not configured")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenDecodeError("Token has expired", exception=e)
        except JWTError as e:
            raise TokenDecodeError("Could not validate credentials", exception=e)

        if any(payload.get(claim) is None for claim in ("sub", "iat", "exp")):
            raise TokenDecodeError("Token has invalid claims")

        if expected_type is not None and payload.get("type") != expected_type:
            raise TokenDecodeError("Token has invalid claims")

        return TokenData(
            account_id=str(payload["sub"]),
            token_type=payload.get("type", ""),
            issued_at=payload["iat"],
            expires_at=payload["exp"],
            jti=payload.get("jti"),
        )


token_issuer = TokenIssuer(
    secret_key=settings.secret_key,
    access_ttl=settings.access_token_expire_seconds,
    refresh_ttl=settings.refresh_token_expire_seconds,
    algorithm=settings.jwt_algorithm,
)
