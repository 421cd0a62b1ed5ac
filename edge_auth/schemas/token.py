from edge_auth.schemas.base import BaseSchema


class TokenData(BaseSchema):
    """Token data schema parsed from JWT payload"""

    account_id: str
    token_type: str
    issued_at: int
    expires_at: int
    jti: str | None = None
