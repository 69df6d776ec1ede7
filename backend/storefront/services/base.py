"""
Cached Service Base

Shared wiring for the entity services: the transactional database resource,
the tagged cache store and the entry lifetime.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Type, TypeVar, Union

import structlog
from pydantic import BaseModel

from ..core.database import DatabaseManager
from ..domain.cache.repository_interfaces import TagLike, TaggedCacheStore
from ..domain.cache.value_objects import TTL

logger = structlog.get_logger()

DEFAULT_TTL = TTL.hours(1)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def coerce_input(
    schema: Type[SchemaT], data: Union[SchemaT, Mapping[str, Any]]
) -> SchemaT:
    """Accept either a validated input model or a raw mapping."""
    if isinstance(data, schema):
        return data
    return schema.model_validate(dict(data))


def is_entity_id(value: Any) -> bool:
    """True for ids that can name a stored row (positive integers)."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def update_changes(
    data: BaseModel, nullable: Iterable[str] = ("description",)
) -> Dict[str, Any]:
    """
    Fields to write on a partial update.

    Absent fields are skipped. An explicit null is written only for the
    nullable columns; elsewhere it means "leave unchanged".
    """
    nullable = set(nullable)
    return {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in nullable
    }


class CachedService:
    """
    Base for services with cache-aware reads and cache-invalidating writes.

    Writes run through `DatabaseManager.run_in_transaction`; tags are
    flushed only after it returns, i.e. after the commit.
    """

    def __init__(
        self,
        database: DatabaseManager,
        cache: TaggedCacheStore,
        ttl: Optional[TTL] = None,
    ):
        self.database = database
        self.cache = cache
        self.ttl = ttl or DEFAULT_TTL

    async def _invalidate(self, *tag_groups: Iterable[TagLike]) -> None:
        """Flush each group of tags in order."""
        for tags in tag_groups:
            tags = list(tags)
            await self.cache.flush(tags)
            logger.debug(
                "Service: Cache tags flushed",
                service=type(self).__name__,
                tags=[str(tag) for tag in tags],
            )
