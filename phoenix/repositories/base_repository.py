from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phoenix.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Lookups and inserts shared by the claim tables.

    Writes commit immediately; the enrichment pipeline performs single-row
    updates and never spans a transaction across stages.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session
            model: The SQLAlchemy model class this repository manages
        """
        self.session = session
        self.model = model
        self.logger = LOGGER

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """Get a record by its primary key, or None."""
        try:
            result = await self.session.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error retrieving {self.model.__name__} by ID {id}: {str(e)}",
                exc_info=True
            )
            raise

    async def list_page(self, order_by: Any, skip: int = 0, limit: int = 200) -> List[ModelType]:
        """One page of records in the given order.

        Args:
            order_by: Column expression to sort by
            skip: Number of records to skip
            limit: Maximum number of records to return
        """
        try:
            query = select(self.model).order_by(order_by).offset(skip).limit(limit)
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error listing {self.model.__name__} records: {str(e)}",
                exc_info=True
            )
            raise

    async def create(self, **values: Any) -> ModelType:
        """Insert one record, commit, and reload server defaults such as ``created_at``."""
        instance = self.model(**values)
        try:
            self.session.add(instance)
            await self.session.commit()
            await self.session.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error creating {self.model.__name__}: {str(e)}",
                exc_info=True
            )
            raise
