"""收藏夹 Store."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime

from pydantic import BaseModel, ValidationError

from feeddeck.core.cache import DEFAULT_TTL_MS, CachePolicy, now_ms
from feeddeck.core.store import Writable
from feeddeck.core.supabase import SupabaseClient
from feeddeck.models.collection import (
    CollectionFeedInsert,
    FeedCollectionInsert,
    FeedCollectionUpdate,
)
from feeddeck.models.functions import (
    GET_USER_COLLECTIONS_WITH_COUNTS,
    CollectionWithCounts,
    UserIdArgs,
)
from feeddeck.stores.auth import AuthStore

logger = logging.getLogger(__name__)

Collection = CollectionWithCounts


class CollectionFeed(BaseModel):
    """收藏夹内的订阅源."""

    feed_id: str
    feed_title: str
    feed_image: str | None = None
    feed_site_url: str | None = None


class CollectionError(Exception):
    """收藏夹操作失败."""


class DuplicateCollectionError(CollectionError):
    """同名收藏夹已存在."""

    def __init__(self, name: str) -> None:
        super().__init__(f'名为 "{name}" 的收藏夹已存在')
        self.name = name


@dataclass(frozen=True)
class CollectionsState:
    """收藏夹状态快照."""

    collections: tuple[Collection, ...] = ()
    is_loading: bool = False
    cache: CachePolicy = field(default_factory=CachePolicy)

    @property
    def last_loaded_at(self) -> float | None:
        return self.cache.last_loaded_at


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


class CollectionsStore:
    """用户收藏夹列表及聚合计数.

    计数只由后端函数计算：影响计数的修改完成后强制重新加载整张列表；
    只影响名称/顺序的修改直接修补本地列表。
    """

    def __init__(
        self,
        client: SupabaseClient,
        auth: AuthStore,
        ttl_ms: float = DEFAULT_TTL_MS,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.client = client
        self.auth = auth
        self._clock = clock
        self._initial = CollectionsState(cache=CachePolicy(ttl_ms=ttl_ms))
        self.state: Writable[CollectionsState] = Writable(self._initial)
        self._epoch = 0

    def subscribe(self, callback: Callable[[CollectionsState], None]) -> Callable[[], None]:
        return self.state.subscribe(callback)

    @property
    def collections(self) -> tuple[Collection, ...]:
        return self.state.get().collections

    async def load_collections(self, force: bool = False) -> None:
        """加载收藏夹（新鲜度窗口内且非强制时跳过）."""
        user = self.auth.user.get()
        if user is None:
            return

        state = self.state.get()
        if state.is_loading:
            return
        if not state.cache.should_load(self._clock(), force):
            return

        epoch = self._epoch
        self.state.update(lambda s: replace(s, is_loading=True))

        response = await self.client.rpc(
            GET_USER_COLLECTIONS_WITH_COUNTS,
            UserIdArgs(user_id_param=user.id).model_dump(),
        ).execute()

        if epoch != self._epoch:
            logger.debug("Store 已重置，丢弃收藏夹响应")
            return

        if response.error:
            logger.error(f"加载收藏夹失败: {response.error}")
            self.state.update(lambda s: replace(s, is_loading=False))
            return

        try:
            collections = tuple(
                Collection.model_validate(row) for row in response.data or []
            )
        except ValidationError as e:
            logger.error(f"收藏夹数据格式错误: {e}")
            self.state.update(lambda s: replace(s, is_loading=False))
            return

        loaded_at = self._clock()
        self.state.update(
            lambda s: replace(
                s,
                collections=collections,
                is_loading=False,
                cache=s.cache.mark_loaded(loaded_at),
            )
        )

    async def create_collection(self, name: str, icon_name: str = "Folder") -> str | None:
        """创建收藏夹，返回新 ID.

        Raises:
            DuplicateCollectionError: 同名收藏夹已存在
            CollectionError: 其他失败
        """
        user = self.auth.user.get()
        if user is None:
            return None

        max_order = max((c.display_order for c in self.collections), default=-1)
        payload = FeedCollectionInsert(
            user_id=user.id,
            name=name,
            icon_name=icon_name,
            display_order=max_order + 1,
        )

        response = await (
            self.client.table("feed_collections")
            .insert(payload.model_dump(exclude_none=True))
            .select("id")
            .single()
            .execute()
        )

        if response.error:
            if response.error.is_unique_violation:
                raise DuplicateCollectionError(name)
            logger.error(f"创建收藏夹失败: {response.error}")
            msg = "创建收藏夹失败"
            raise CollectionError(msg)

        # 计数需要由后端重新计算
        await self.load_collections(force=True)
        return response.data["id"]

    async def update_collection(
        self, collection_id: str, name: str, icon_name: str
    ) -> bool:
        """重命名/更换图标.

        Raises:
            DuplicateCollectionError: 同名收藏夹已存在
            CollectionError: 其他失败
        """
        user = self.auth.user.get()
        if user is None:
            return False

        payload = FeedCollectionUpdate(
            name=name, icon_name=icon_name, updated_at=_utc_now_iso()
        )
        response = await (
            self.client.table("feed_collections")
            .update(payload.model_dump(exclude_none=True))
            .eq("id", collection_id)
            .eq("user_id", user.id)
            .execute()
        )

        if response.error:
            if response.error.is_unique_violation:
                raise DuplicateCollectionError(name)
            logger.error(f"更新收藏夹失败: {response.error}")
            msg = "更新收藏夹失败"
            raise CollectionError(msg)

        self.state.update(
            lambda s: replace(
                s,
                collections=tuple(
                    c.model_copy(update={"collection_name": name, "icon_name": icon_name})
                    if c.collection_id == collection_id
                    else c
                    for c in s.collections
                ),
            )
        )
        return True

    async def delete_collection(self, collection_id: str) -> bool:
        """删除收藏夹."""
        user = self.auth.user.get()
        if user is None:
            return False

        response = await (
            self.client.table("feed_collections")
            .delete()
            .eq("id", collection_id)
            .eq("user_id", user.id)
            .execute()
        )

        if response.error:
            logger.error(f"删除收藏夹失败: {response.error}")
            return False

        self.state.update(
            lambda s: replace(
                s,
                collections=tuple(
                    c for c in s.collections if c.collection_id != collection_id
                ),
            )
        )
        return True

    async def add_feed_to_collection(self, collection_id: str, feed_id: str) -> bool:
        """把订阅源加入收藏夹（已在其中视为成功）."""
        user = self.auth.user.get()
        if user is None:
            return False

        payload = CollectionFeedInsert(collection_id=collection_id, feed_id=feed_id)
        response = await (
            self.client.table("collection_feeds").insert(payload.model_dump()).execute()
        )

        if response.error:
            if response.error.is_unique_violation:
                return True
            logger.error(f"添加订阅源到收藏夹失败: {response.error}")
            return False

        await self.load_collections(force=True)
        return True

    async def remove_feed_from_collection(
        self, collection_id: str, feed_id: str
    ) -> bool:
        """把订阅源移出收藏夹."""
        user = self.auth.user.get()
        if user is None:
            return False

        response = await (
            self.client.table("collection_feeds")
            .delete()
            .eq("collection_id", collection_id)
            .eq("feed_id", feed_id)
            .execute()
        )

        if response.error:
            logger.error(f"从收藏夹移除订阅源失败: {response.error}")
            return False

        await self.load_collections(force=True)
        return True

    async def get_collection_feeds(self, collection_id: str) -> list[CollectionFeed]:
        """获取收藏夹内的订阅源详情."""
        user = self.auth.user.get()
        if user is None:
            return []

        membership = await (
            self.client.table("collection_feeds")
            .select("feed_id")
            .eq("collection_id", collection_id)
            .execute()
        )
        if membership.error:
            logger.error(f"加载收藏夹成员失败: {membership.error}")
            return []
        if not membership.data:
            return []

        feed_ids = [row["feed_id"] for row in membership.data]

        feeds = await (
            self.client.table("feeds")
            .select("id, title, image, site_url")
            .in_("id", feed_ids)
            .execute()
        )
        if feeds.error:
            logger.error(f"加载订阅源失败: {feeds.error}")
            return []

        return [
            CollectionFeed(
                feed_id=row["id"],
                feed_title=row.get("title") or "Untitled Feed",
                feed_image=row.get("image"),
                feed_site_url=row.get("site_url"),
            )
            for row in feeds.data or []
        ]

    async def reorder_collections(self, ordered_ids: list[str]) -> bool:
        """按给定顺序重写 display_order.

        各条更新并发执行，尽力而为：任一失败即返回 False，
        已成功的更新不会回滚，远端顺序可能只被部分修改。
        """
        user = self.auth.user.get()
        if user is None:
            return False

        updated_at = _utc_now_iso()
        results = await asyncio.gather(
            *(
                self.client.table("feed_collections")
                .update(
                    FeedCollectionUpdate(
                        display_order=index, updated_at=updated_at
                    ).model_dump(exclude_none=True)
                )
                .eq("id", collection_id)
                .eq("user_id", user.id)
                .execute()
                for index, collection_id in enumerate(ordered_ids)
            )
        )

        errors = [r.error for r in results if r.error]
        if errors:
            logger.error(f"重排收藏夹失败: {len(errors)}/{len(results)} 个更新出错")
            return False

        def reorder(s: CollectionsState) -> CollectionsState:
            by_id = {c.collection_id: c for c in s.collections}
            return replace(
                s,
                collections=tuple(
                    by_id[cid].model_copy(update={"display_order": index})
                    for index, cid in enumerate(ordered_ids)
                    if cid in by_id
                ),
            )

        self.state.update(reorder)
        return True

    async def decrement_unread_count(self, feed_id: str) -> None:
        """某条目被标记已读后刷新计数.

        本地不跟踪订阅源与收藏夹的成员关系，因此直接强制重新加载。
        """
        logger.debug(f"订阅源 {feed_id} 有条目已读，刷新收藏夹计数")
        await self.load_collections(force=True)

    def reset(self) -> None:
        """恢复初始状态；正在进行的请求返回后会被丢弃."""
        self._epoch += 1
        self.state.set(self._initial)
