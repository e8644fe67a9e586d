"""设备本地存储."""

import logging
from datetime import UTC, datetime

from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from feeddeck.models.database import create_engine, create_session_factory
from feeddeck.models.local_item import LocalItem

logger = logging.getLogger(__name__)


class LocalStorageError(Exception):
    """本地存储错误."""


class LocalStorage:
    """基于 SQLite 的键值存储."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        """初始化数据库."""
        if self._engine is not None:
            return
        self._engine = await create_engine(self.database_url)
        self._session_factory = create_session_factory(self._engine)

    async def close(self) -> None:
        """释放数据库连接."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    def _sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            msg = "本地存储未初始化，请先调用 init()"
            raise LocalStorageError(msg)
        return self._session_factory

    async def get_item(self, key: str) -> str | None:
        """读取值，不存在时返回 None."""
        async with self._sessions()() as session:
            item = await session.get(LocalItem, key)
            return item.value if item else None

    async def set_item(self, key: str, value: str) -> None:
        """写入值（已存在时覆盖）."""
        updated_at = datetime.now(UTC)
        stmt = (
            insert(LocalItem)
            .values(key=key, value=value, updated_at=updated_at)
            .on_conflict_do_update(
                index_elements=["key"],
                set_={"value": value, "updated_at": updated_at},
            )
        )
        async with self._sessions()() as session:
            await session.execute(stmt)
            await session.commit()

    async def remove_item(self, key: str) -> None:
        """删除值（不存在时忽略）."""
        async with self._sessions()() as session:
            item = await session.get(LocalItem, key)
            if item:
                await session.delete(item)
                await session.commit()
