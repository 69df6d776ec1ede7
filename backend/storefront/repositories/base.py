"""
Base Repository

CRUD access shared by the category, product and order repositories.
Repositories flush so generated ids and constraint errors appear inside
the caller's transaction, but never commit: the transaction boundary
belongs to DatabaseManager.run_in_transaction.
"""

from typing import Any, Iterable, Mapping, Optional, Sequence, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from storefront.models import Base

logger = structlog.get_logger()


class BaseRepository:
    """
    Repository over a single mapped model.

    Relations are named explicitly and loaded with selectinload, since an
    AsyncSession cannot lazy load them on attribute access.
    """

    def __init__(self, session: AsyncSession, model: Type[Base]):
        if not isinstance(session, AsyncSession):
            raise TypeError(
                f"{type(self).__name__} needs an AsyncSession, "
                f"got {type(session).__name__}"
            )
        if getattr(model, "__tablename__", None) is None:
            raise TypeError(f"{model!r} is not a mapped model")

        self.session = session
        self.model = model

    @property
    def _name(self) -> str:
        return self.model.__name__

    def _failed(self, action: str, error: Exception, **context: Any) -> None:
        logger.error(
            f"{self._name} {action} failed",
            model=self._name,
            error=str(error),
            exc_info=True,
            **context,
        )

    def _load_options(self, relations: Iterable[str]) -> list:
        options = []
        for name in relations:
            attribute = getattr(self.model, name, None)
            if attribute is None:
                raise ValueError(f"{self._name} has no relation named '{name}'")
            options.append(selectinload(attribute))
        return options

    async def find(self, id: int) -> Optional[Base]:
        """Row by primary key from the identity map or the database."""
        if id is None:
            raise ValueError(f"{self._name} id must not be None")

        try:
            return await self.session.get(self.model, id)
        except Exception as e:
            self._failed("find", e, entity_id=id)
            raise

    async def find_with_relations(
        self, id: int, relations: Sequence[str] = ()
    ) -> Optional[Base]:
        """
        Row by primary key with `relations` loaded.

        The row is always re-read (populate_existing), so values changed by
        UPDATE statements issued outside the unit of work, such as the stock
        decrement, are visible.
        """
        if id is None:
            raise ValueError(f"{self._name} id must not be None")

        query = (
            select(self.model)
            .where(self.model.id == id)
            .options(*self._load_options(relations))
            .execution_options(populate_existing=True)
        )
        try:
            return (await self.session.execute(query)).scalar_one_or_none()
        except Exception as e:
            self._failed("find_with_relations", e, entity_id=id, relations=list(relations))
            raise

    async def list_with_relations(self, relations: Sequence[str] = ()) -> list[Base]:
        """All rows in id order with `relations` loaded."""
        query = (
            select(self.model)
            .options(*self._load_options(relations))
            .order_by(self.model.id)
            .execution_options(populate_existing=True)
        )
        try:
            rows = list((await self.session.execute(query)).scalars())
        except Exception as e:
            self._failed("list", e, relations=list(relations))
            raise

        logger.debug(f"{self._name} rows listed", model=self._name, count=len(rows))
        return rows

    async def create(self, data: Mapping[str, Any]) -> Base:
        """Insert a row built from `data` and return it with its id assigned."""
        if data is None:
            raise ValueError(f"{self._name} data must not be None")

        row = self.model(**dict(data))
        self.session.add(row)
        try:
            await self.session.flush()
            await self.session.refresh(row)
        except Exception as e:
            self._failed("create", e)
            raise

        logger.info(f"{self._name} created", model=self._name, entity_id=row.id)
        return row

    async def update(self, row: Base, data: Mapping[str, Any]) -> Base:
        """
        Copy `data` onto `row`.

        Keys that are not columns of the model, and the primary key, are
        skipped.
        """
        if row is None or getattr(row, "id", None) is None:
            raise ValueError(f"{self._name} update needs a persisted row")

        columns = set(self.model.__table__.columns.keys()) - {"id"}
        changed = sorted(field for field in data if field in columns)
        for field in changed:
            setattr(row, field, data[field])

        try:
            await self.session.flush()
            await self.session.refresh(row)
        except Exception as e:
            self._failed("update", e, entity_id=row.id)
            raise

        logger.info(
            f"{self._name} updated", model=self._name, entity_id=row.id, fields=changed
        )
        return row

    async def delete(self, row: Optional[Base]) -> bool:
        """
        Hard delete `row`; ORM cascades remove dependent rows.

        Returns False when there is nothing to delete.
        """
        if row is None:
            return False

        entity_id = row.id
        try:
            await self.session.delete(row)
            await self.session.flush()
        except Exception as e:
            self._failed("delete", e, entity_id=entity_id)
            raise

        logger.info(f"{self._name} deleted", model=self._name, entity_id=entity_id)
        return True
