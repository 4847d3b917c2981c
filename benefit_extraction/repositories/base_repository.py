from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.utils.logging import get_logger

ModelType = TypeVar("ModelType")

LOGGER = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Row lookup and flush-only writes shared by the model repositories.

    Nothing here commits; the calling service owns the transaction so several
    repository writes land together.
    """

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        self.session = session
        self.model = model

    def _filtered(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        for column, value in (filters or {}).items():
            query = query.where(getattr(self.model, column) == value)
        return query

    async def get_by_id(self, id: UUID) -> Optional[ModelType]:
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 200,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Any = None,
    ) -> List[ModelType]:
        """Page through rows matching ``filters`` (column name -> value)."""
        query = self._filtered(select(self.model), filters)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self._filtered(select(func.count()).select_from(self.model), filters)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def create(self, **fields) -> ModelType:
        instance = self.model(**fields)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def update(self, id: UUID, **fields) -> Optional[ModelType]:
        """Set ``fields`` on an existing row.

        Returns:
            The updated row, or None when it does not exist
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None
        for key, value in fields.items():
            setattr(instance, key, value)
        await self.session.flush()
        return instance

    async def delete(self, id: UUID) -> bool:
        instance = await self.get_by_id(id)
        if instance is None:
            LOGGER.debug(f"{self.model.__name__} {id} not found for delete")
            return False
        await self.session.delete(instance)
        await self.session.flush()
        return True
