"""应用上下文：启动时创建一次，持有客户端与全部 Store."""

import logging
from collections.abc import Callable

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from feeddeck.config import Settings
from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.media import MediaQuery, Viewport
from feeddeck.core.supabase import SupabaseClient, SupabaseConfig
from feeddeck.models.auth import User
from feeddeck.stores.auth import AuthStore
from feeddeck.stores.collections import CollectionsStore
from feeddeck.stores.screen_size import ScreenSizeStore
from feeddeck.stores.sidebar import SidebarStore
from feeddeck.stores.theme import ResolvedTheme, ThemeStore
from feeddeck.stores.toast import ToastStore

logger = logging.getLogger(__name__)


class AppContext:
    """应用上下文."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        media_query: MediaQuery | None = None,
        viewport: Viewport | None = None,
        apply_theme: Callable[[ResolvedTheme], None] | None = None,
    ) -> None:
        self.settings = settings
        self.storage = LocalStorage(settings.local_storage_url)
        self.client = SupabaseClient(
            SupabaseConfig(
                url=settings.supabase_url,
                anon_key=settings.supabase_anon_key,
                persist_session=settings.persist_session,
                auto_refresh_token=settings.auto_refresh_token,
            ),
            self.storage,
            transport=transport,
        )
        self.scheduler = AsyncIOScheduler()

        self.auth = AuthStore(self.client, settings.site_origin)
        self.theme = ThemeStore(
            self.client,
            self.auth,
            self.storage,
            media_query=media_query,
            apply=apply_theme,
        )
        self.collections = CollectionsStore(
            self.client,
            self.auth,
            ttl_ms=settings.freshness_window_ms,
        )
        self.sidebar = SidebarStore(
            self.client,
            self.auth,
            scheduler=self.scheduler,
            ttl_ms=settings.freshness_window_ms,
            refresh_seconds=settings.sidebar_refresh_seconds,
            suggestions_admin_email=settings.suggestions_admin_email,
        )
        self.toast = ToastStore(default_duration=settings.toast_duration_ms)
        self.screen_size = ScreenSizeStore(viewport)

        self._teardowns: list[Callable[[], None]] = []

    async def start(self) -> None:
        """初始化本地存储、会话与主题."""
        await self.storage.init()
        self._teardowns.append(await self.auth.start())
        self._teardowns.append(self.auth.user.subscribe(self._on_user_change))
        self._teardowns.append(await self.theme.load_theme())
        logger.info("应用上下文已启动")

    def _on_user_change(self, user: User | None) -> None:
        # 退出登录后丢弃上一个用户的缓存
        if user is None:
            self.collections.reset()
            self.sidebar.reset()

    async def close(self) -> None:
        """停止所有监听与定时任务，释放连接."""
        while self._teardowns:
            self._teardowns.pop()()

        self.sidebar.stop_refresh_interval()
        self.toast.clear()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        await self.client.close()
        await self.storage.close()
        logger.info("应用上下文已关闭")
