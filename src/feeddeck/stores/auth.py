"""认证状态 Store."""

import logging
from collections.abc import Callable

from feeddeck.core.auth_client import AuthChangeEvent, AuthResponse
from feeddeck.core.store import Writable
from feeddeck.core.supabase import SupabaseClient
from feeddeck.models.auth import Session, User

logger = logging.getLogger(__name__)


class AuthStore:
    """当前会话/用户.

    启动时读取一次会话，之后由会话变化推送保持同步；
    两条路径写入同一组 Store。所有操作原样透传 ``AuthResponse``。
    """

    def __init__(self, client: SupabaseClient, site_origin: str) -> None:
        self.client = client
        self.site_origin = site_origin.rstrip("/")
        self.user: Writable[User | None] = Writable(None)
        self.session: Writable[Session | None] = Writable(None)
        self.loading: Writable[bool] = Writable(True)
        self._unsubscribe: Callable[[], None] | None = None

    async def start(self) -> Callable[[], None]:
        """读取初始会话并开始监听变化，返回停止函数."""
        if self._unsubscribe is None:
            self._unsubscribe = self.client.auth.on_auth_state_change(self._on_change)

        response = await self.client.auth.get_session()
        if response.error:
            logger.warning(f"读取会话失败: {response.error}")
        self._apply(response.data.session)
        return self.stop

    def stop(self) -> None:
        """停止监听会话变化."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, _event: AuthChangeEvent, session: Session | None) -> None:
        self._apply(session)

    def _apply(self, session: Session | None) -> None:
        self.session.set(session)
        self.user.set(session.user if session else None)
        self.loading.set(False)

    async def sign_up(self, email: str, password: str) -> AuthResponse:
        return await self.client.auth.sign_up(email, password)

    async def sign_in(self, email: str, password: str) -> AuthResponse:
        return await self.client.auth.sign_in_with_password(email, password)

    async def sign_out(self) -> AuthResponse:
        return await self.client.auth.sign_out()

    async def reset_password_for_email(self, email: str) -> AuthResponse:
        return await self.client.auth.reset_password_for_email(
            email, redirect_to=f"{self.site_origin}/auth/reset-password"
        )

    async def update_password(self, new_password: str) -> AuthResponse:
        return await self.client.auth.update_user(password=new_password)

    async def sign_in_with_google(self) -> AuthResponse:
        return await self.client.auth.sign_in_with_oauth(
            "google", redirect_to=f"{self.site_origin}/auth/callback"
        )

    async def exchange_code_for_session(self, code: str) -> AuthResponse:
        return await self.client.auth.exchange_code_for_session(code)
