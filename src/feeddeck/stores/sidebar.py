"""侧边栏订阅列表 Store."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar
from urllib.parse import urlparse

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from pydantic import BaseModel, ValidationError

from feeddeck.core.cache import DEFAULT_TTL_MS, CachePolicy, now_ms
from feeddeck.core.store import Writable
from feeddeck.core.supabase import SupabaseClient
from feeddeck.models.functions import (
    GET_PENDING_SUGGESTIONS_COUNT,
    GET_UNREAD_COUNTS,
    UnreadCount,
    UserIdArgs,
)
from feeddeck.models.subscription import SubscriptionWithFeed
from feeddeck.stores.auth import AuthStore

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "sidebar_refresh"

SUBSCRIPTION_COLUMNS = """
    feed_id,
    feeds:feed_id (
        id,
        title,
        url,
        category,
        image,
        site_url
    )
"""


class FeedCategorizer:
    """根据订阅源地址推导分类，判断元数据是否尚未补全."""

    # 知名平台直接映射为固定名称
    PLATFORMS: ClassVar[list[tuple[str, str]]] = [
        ("youtube.com", "YouTube"),
        ("reddit.com", "Reddit"),
        ("github.com", "GitHub"),
        ("medium.com", "Medium"),
        ("substack.com", "Substack"),
    ]

    # 抓取服务补全元数据之前使用的占位标题
    GENERIC_TITLES: ClassVar[frozenset[str]] = frozenset(
        {
            "YouTube",
            "GitHub",
            "Reddit",
            "Medium",
            "Substack",
            "Twitter/X",
            "LinkedIn",
            "Feed",
        }
    )

    def domain_category(self, url: str | None) -> str:
        """
        从 URL 域名推导分类.

        例如 https://blog.example.com -> "Example"，无法解析时为 "Other"。
        """
        if not url:
            return "Other"

        try:
            host = urlparse(url).hostname
        except ValueError:
            return "Other"
        if not host:
            return "Other"

        domain = host.replace("www.", "", 1)
        for needle, label in self.PLATFORMS:
            if needle in domain:
                return label

        parts = domain.split(".")
        main = parts[-2] if len(parts) > 2 else parts[0]
        return main[:1].upper() + main[1:]

    def is_pending_sync(self, title: str | None, image: str | None) -> bool:
        """标题缺失/为占位标题且没有图标时，视为尚未同步完成."""
        has_generic_title = not title or title in self.GENERIC_TITLES
        return has_generic_title and not image


class FeedWithUnread(BaseModel):
    """侧边栏中的订阅源."""

    feed_id: str
    feed_title: str
    feed_category: str
    feed_url: str | None = None
    feed_image: str | None = None
    feed_site_url: str | None = None
    unread_count: int = 0


@dataclass(frozen=True)
class SidebarState:
    """侧边栏状态快照."""

    feeds: tuple[FeedWithUnread, ...] = ()
    total_unread: int = 0
    pending_suggestions_count: int = 0
    is_loading: bool = False
    cache: CachePolicy = field(default_factory=CachePolicy)

    @property
    def last_loaded_at(self) -> float | None:
        return self.cache.last_loaded_at


def build_feed_list(
    subscriptions: Iterable[SubscriptionWithFeed],
    unread_counts: dict[str, int],
    categorizer: FeedCategorizer | None = None,
) -> tuple[FeedWithUnread, ...]:
    """合并订阅与未读数，过滤尚未同步完成的订阅源."""
    categorizer = categorizer or FeedCategorizer()
    feeds: list[FeedWithUnread] = []

    for subscription in subscriptions:
        feed = subscription.feed
        if feed is None:
            continue
        if categorizer.is_pending_sync(feed.title, feed.image):
            continue

        feed_url = feed.url or feed.site_url
        domain_category = categorizer.domain_category(feed_url)
        image = feed.image.rstrip("/") if feed.image else None

        feeds.append(
            FeedWithUnread(
                feed_id=feed.id,
                feed_title=feed.title or domain_category,
                feed_category=feed.category or domain_category,
                feed_url=feed_url,
                feed_image=image or None,
                feed_site_url=feed.site_url or None,
                unread_count=unread_counts.get(feed.id, 0),
            )
        )

    return tuple(feeds)


class SidebarStore:
    """用户订阅列表 + 未读数，定时轮询刷新."""

    def __init__(
        self,
        client: SupabaseClient,
        auth: AuthStore,
        scheduler: AsyncIOScheduler | None = None,
        ttl_ms: float = DEFAULT_TTL_MS,
        refresh_seconds: int = 30,
        suggestions_admin_email: str = "",
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.client = client
        self.auth = auth
        self.scheduler = scheduler or AsyncIOScheduler()
        self.refresh_seconds = refresh_seconds
        self.suggestions_admin_email = suggestions_admin_email
        self.categorizer = FeedCategorizer()
        self._clock = clock
        self._initial = SidebarState(cache=CachePolicy(ttl_ms=ttl_ms))
        self.state: Writable[SidebarState] = Writable(self._initial)
        self._epoch = 0

    def subscribe(self, callback: Callable[[SidebarState], None]) -> Callable[[], None]:
        return self.state.subscribe(callback)

    @property
    def feeds(self) -> tuple[FeedWithUnread, ...]:
        return self.state.get().feeds

    async def load_feeds(self, force: bool = False) -> None:
        """加载订阅列表和未读数（新鲜度窗口内且非强制时跳过）."""
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

        subscriptions = await (
            self.client.table("user_subscriptions")
            .select(SUBSCRIPTION_COLUMNS)
            .eq("user_id", user.id)
            .order("subscribed_at", ascending=False)
            .execute()
        )
        if epoch != self._epoch:
            logger.debug("Store 已重置，丢弃订阅列表响应")
            return
        if subscriptions.error:
            logger.error(f"加载订阅列表失败: {subscriptions.error}")
            self._finish_failed_load()
            return

        unread = await self.client.rpc(
            GET_UNREAD_COUNTS, UserIdArgs(user_id_param=user.id).model_dump()
        ).execute()
        if epoch != self._epoch:
            logger.debug("Store 已重置，丢弃未读数响应")
            return
        if unread.error:
            logger.error(f"加载未读数失败: {unread.error}")
            self._finish_failed_load()
            return

        try:
            rows = [SubscriptionWithFeed.model_validate(r) for r in subscriptions.data or []]
            counts = [UnreadCount.model_validate(r) for r in unread.data or []]
        except ValidationError as e:
            logger.error(f"订阅数据格式错误: {e}")
            self._finish_failed_load()
            return

        unread_map = {c.feed_id: c.unread_count for c in counts}
        feeds = build_feed_list(rows, unread_map, self.categorizer)
        total_unread = sum(f.unread_count for f in feeds)
        loaded_at = self._clock()

        self.state.update(
            lambda s: replace(
                s,
                feeds=feeds,
                total_unread=total_unread,
                is_loading=False,
                cache=s.cache.mark_loaded(loaded_at),
            )
        )

    def _finish_failed_load(self) -> None:
        self.state.update(lambda s: replace(s, is_loading=False))

    async def load_pending_suggestions_count(self) -> None:
        """加载待审核推荐数（仅管理员账号）."""
        user = self.auth.user.get()
        if user is None or not self.suggestions_admin_email:
            return
        if user.email != self.suggestions_admin_email:
            return

        epoch = self._epoch
        response = await self.client.rpc(GET_PENDING_SUGGESTIONS_COUNT).execute()
        if epoch != self._epoch:
            return
        if response.error:
            logger.error(f"加载待审核推荐数失败: {response.error}")
            return

        count: Any = response.data or 0
        self.state.update(lambda s: replace(s, pending_suggestions_count=int(count)))

    async def refresh(self) -> None:
        """定时刷新任务."""
        await self.load_feeds(force=True)
        await self.load_pending_suggestions_count()

    def start_refresh_interval(self) -> None:
        """开始定时刷新（重复调用会替换已有任务）."""
        if not self.scheduler.running:
            self.scheduler.start()

        self.scheduler.add_job(
            self.refresh,
            "interval",
            seconds=self.refresh_seconds,
            id=REFRESH_JOB_ID,
            name="侧边栏定时刷新",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"侧边栏定时刷新已启动，间隔: {self.refresh_seconds} 秒")

    def stop_refresh_interval(self) -> None:
        """停止定时刷新."""
        if self.scheduler.get_job(REFRESH_JOB_ID):
            self.scheduler.remove_job(REFRESH_JOB_ID)
            logger.info("侧边栏定时刷新已停止")

    @property
    def refresh_active(self) -> bool:
        return self.scheduler.get_job(REFRESH_JOB_ID) is not None

    def reset(self) -> None:
        """停止刷新并恢复初始状态；正在进行的请求返回后会被丢弃."""
        self.stop_refresh_interval()
        self._epoch += 1
        self.state.set(self._initial)
