from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from edge_auth.core.auth import hash_password_async
from edge_auth.models.user import User
from edge_auth.repos.base import BaseRepository
from edge_auth.schemas import UserCreate


class UserRepo(BaseRepository[User, UserCreate]):
    def __init__(self, session: AsyncSession):
        """User directory backed by the user table"""
        super().__init__(session, User)

    async def get_by_email_or_username(self, email: str, username: str) -> User | None:
        """
        Get the first user matching either the email or the username

        Args:
            email (str): The email to look up.
            username (str): The username to look up.

        Returns:
            User | None: The matching user if any, else None.
        """
        query = (
            select(self.model)
            .where(or_(self.model.email == email, self.model.username == username))
            .limit(1)
        )
        result = await self.session.execute(query)

        return result.scalar_one_or_none()

    async def create_user(self, username: str, email: str, password: str) -> User:
        """
        Hash the password and persist a new user

        Args:
            username (str): Unique username.
            email (str): Unique email.
            password (str): Plain password, only its hash is stored.

        Returns:
            User: The created user.

        Raises:
            DuplicateResourceError: If the email or username is already taken.
        """
        hashed_password = await hash_password_async(password)

        return await self.create_one(
            schema=UserCreate(
                username=username,
                email=email,
                hashed_password=hashed_password,
            ),
        )
