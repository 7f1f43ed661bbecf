"""Shared data access for the mirror tables.

Mirrored entities are keyed by their GitHub node id, so writes go through
``_upsert``: load by primary key, then insert or overwrite in place.
"""

import asyncio
from collections.abc import Collection
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Typed access to one table on a caller-owned session.

    Subclasses fix the model:

        class ReviewRepository(BaseRepository[Review]):
            def __init__(self, session, write_lock=None):
                super().__init__(session, Review, write_lock)

    Every repository of a ``MirrorStore`` shares one ``write_lock``, which
    ``MirrorStore.commit`` also holds, so a flush never
    interleaves with a commit on the shared session.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[ModelT],
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._session = session
        self._model_class = model_class
        self._write_lock = write_lock

    async def get_by_id(self, id: object) -> ModelT | None:
        return await self._session.get(self._model_class, id)

    async def get_many(self, ids: Collection[str]) -> list[ModelT]:
        """Rows whose node id is in ``ids``; unknown ids are skipped."""
        if not ids:
            return []
        node_id = getattr(self._model_class, "id")
        stmt = select(self._model_class).where(node_id.in_(list(ids)))
        return list((await self._session.scalars(stmt)).all())

    async def _get_by_field(self, field_name: str, value: object) -> ModelT | None:
        column = getattr(self._model_class, field_name)
        stmt = select(self._model_class).where(column == value).limit(1)
        return (await self._session.scalars(stmt)).first()

    async def exists(self, id: object) -> bool:
        return await self.get_by_id(id) is not None

    async def count(self) -> int:
        total = await self._session.scalar(select(func.count()).select_from(self._model_class))
        return total or 0

    def add(self, entity: ModelT) -> ModelT:
        """Stage a new row; it is written on the next flush."""
        self._session.add(entity)
        return entity

    async def flush(self) -> None:
        if self._write_lock is None:
            await self._session.flush()
            return
        async with self._write_lock:
            await self._session.flush()

    async def _upsert(
        self,
        values: dict[str, Any],
        *,
        keep_existing: Collection[str] = (),
    ) -> ModelT:
        """Insert or overwrite the row keyed by ``values["id"]`` and flush.

        Later writes win field by field. A None value for a field listed in
        ``keep_existing`` leaves the stored value alone, e.g. a comment's
        parent link once it is known.
        """
        entity = await self.get_by_id(values["id"])
        if entity is None:
            entity = self.add(self._model_class(**values))
        else:
            for key, value in values.items():
                if value is None and key in keep_existing:
                    continue
                setattr(entity, key, value)
        await self.flush()
        return entity
