from typing import Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edge_auth.core.exceptions.domain import DuplicateResourceError
from edge_auth.models import Base

Model = TypeVar("Model", bound=Base)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class BaseRepository(Generic[Model, CreateSchema]):
    def __init__(
        self,
        session: AsyncSession,
        model: Type[Model],
    ):
        """
        Initialize the repository with a session and model.

        Args:
            session (AsyncSession): The database session.
            model (Type[Model]): The model class.
        """
        self.session = session
        self.model = model

    async def create_one(
        self, schema: CreateSchema, exclude_none: bool = True, auto_commit: bool = True
    ) -> Model:
        """
        Create a new object in the database.

        Args:
            schema (CreateSchema): The data to create the object.
            exclude_none (bool): Whether to exclude None values from the creation.
            auto_commit (bool): Whether to commit the transaction.

        Returns:
            created_object (Model): The created object.

        Raises:
            DuplicateResourceError: If a unique constraint rejects the row. Concurrent
                inserts of the same key end up here rather than in a prior lookup.
            IntegrityError: For any other constraint violation.
        """
        stmt = (
            insert(self.model)
            .values(**schema.model_dump(exclude_none=exclude_none))
            .returning(self.model)
        )
        try:
            result = await self.session.execute(stmt)
            created = result.scalar_one()
            if auto_commit:
                await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if getattr(e.orig, "sqlstate", None) != UNIQUE_VIOLATION:
                raise

            raise DuplicateResourceError(
                f"{self.model.__name__} violates a unique constraint", exception=e
            )

        return created
