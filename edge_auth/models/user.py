from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from edge_auth.core.constants import FieldSizes
from edge_auth.models.base import Base


class User(Base):
    """Account record, email and username are each unique across all accounts"""

    username: Mapped[str] = mapped_column(
        String(FieldSizes.USERNAME),
        unique=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(FieldSizes.EMAIL),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(FieldSizes.PASSWORD_HASH),
        nullable=False,
    )
