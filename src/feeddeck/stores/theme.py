"""主题偏好 Store."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Literal, get_args

from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.media import MediaQuery
from feeddeck.core.store import Derived, Writable
from feeddeck.core.supabase import SupabaseClient
from feeddeck.models.user_settings import UserSettingsInsert, UserSettingsRow
from feeddeck.stores.auth import AuthStore

logger = logging.getLogger(__name__)

ThemeValue = Literal["system", "light", "dark"]
ResolvedTheme = Literal["light", "dark"]

THEME_VALUES: tuple[str, ...] = get_args(ThemeValue)
STORAGE_KEY = "theme"


def resolve_theme(theme: ThemeValue, system_prefers_dark: bool) -> ResolvedTheme:
    """偏好为 system 时跟随系统，否则直接使用偏好."""
    if theme == "system":
        return "dark" if system_prefers_dark else "light"
    return theme


def parse_theme(value: str | None) -> ThemeValue | None:
    if value in THEME_VALUES:
        return value  # type: ignore[return-value]
    return None


class ThemeStore:
    """主题偏好.

    本地存储用于启动时立即应用，远端 user_settings 行加载后为准。
    """

    def __init__(
        self,
        client: SupabaseClient,
        auth: AuthStore,
        storage: LocalStorage,
        media_query: MediaQuery | None = None,
        apply: Callable[[ResolvedTheme], None] | None = None,
    ) -> None:
        self.client = client
        self.auth = auth
        self.storage = storage
        self.media_query = media_query
        self.theme: Writable[ThemeValue] = Writable("system")
        self.system_prefers_dark: Writable[bool] = Writable(False)
        self.resolved_theme: Derived[ResolvedTheme] = Derived(
            [self.theme, self.system_prefers_dark], resolve_theme
        )
        self._apply = apply
        self._teardowns: list[Callable[[], None]] = []

    def _watch_system_preference(self) -> None:
        if self.media_query is None:
            return
        self.system_prefers_dark.set(self.media_query.matches)
        self._teardowns.append(self.media_query.add_listener(self.system_prefers_dark.set))

    async def load_theme(self) -> Callable[[], None]:
        """
        启动时加载主题.

        1. 监听系统深色模式
        2. 立即应用本地存储中的偏好
        3. 已登录时读取远端偏好并覆盖本地

        Returns:
            停止监听的函数
        """
        self.close()
        self._watch_system_preference()

        # 先读出本地偏好再应用，首次应用即为最终的本地结果
        stored = parse_theme(await self.storage.get_item(STORAGE_KEY))
        if stored is not None:
            self.theme.set(stored)

        if self._apply is not None:
            self._teardowns.append(self.resolved_theme.subscribe(self._apply))

        await self.load_remote_theme()
        return self.close

    async def load_remote_theme(self) -> None:
        """读取远端偏好；存在时覆盖内存与本地存储."""
        user = self.auth.user.get()
        if user is None:
            return

        response = await (
            self.client.table("user_settings")
            .select("user_id, theme")
            .eq("user_id", user.id)
            .maybe_single()
            .execute()
        )
        if response.error:
            logger.error(f"加载主题设置失败: {response.error}")
            return
        if response.data is None:
            return

        remote = parse_theme(UserSettingsRow.model_validate(response.data).theme)
        if remote is None:
            return

        self.theme.set(remote)
        await self.storage.set_item(STORAGE_KEY, remote)

    async def set_theme(self, value: ThemeValue) -> None:
        """设置偏好：先写本地存储，已登录时再写入远端."""
        self.theme.set(value)
        await self.storage.set_item(STORAGE_KEY, value)

        user = self.auth.user.get()
        if user is None:
            return

        payload = UserSettingsInsert(
            user_id=user.id,
            theme=value,
            updated_at=datetime.now(UTC).isoformat(),
        )
        response = await (
            self.client.table("user_settings")
            .upsert(payload.model_dump(exclude_none=True), on_conflict="user_id")
            .execute()
        )
        if response.error:
            logger.error(f"保存主题设置失败: {response.error}")

    def close(self) -> None:
        """移除系统偏好监听."""
        while self._teardowns:
            self._teardowns.pop()()
