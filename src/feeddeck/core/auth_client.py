"""Supabase Auth (GoTrue) 客户端."""

import asyncio
import base64
import hashlib
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from feeddeck.models.auth import AuthData, Session, User

if TYPE_CHECKING:
    from feeddeck.core.local_storage import LocalStorage
    from feeddeck.core.supabase import SupabaseConfig

logger = logging.getLogger(__name__)

AuthChangeEvent = Literal[
    "SIGNED_IN",
    "SIGNED_OUT",
    "TOKEN_REFRESHED",
    "USER_UPDATED",
]
AuthListener = Callable[[AuthChangeEvent, Session | None], None]


class AuthError(Exception):
    """认证服务错误."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "AuthError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = (
            body.get("error_description")
            or body.get("msg")
            or body.get("message")
            or body.get("error")
            or response.text
            or response.reason_phrase
        )
        code = body.get("error_code") or body.get("error")
        return cls(str(message), status=response.status_code, code=code)


@dataclass
class AuthResponse:
    """认证操作结果：data 与 error 原样返回给调用方."""

    data: AuthData = field(default_factory=AuthData)
    error: AuthError | None = None


def _code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class AuthClient:
    """GoTrue 认证客户端.

    会话保存在内存中，``persist_session`` 开启时同步写入本地存储；
    会话变化通过 ``on_auth_state_change`` 注册的回调推送。
    """

    def __init__(
        self,
        config: "SupabaseConfig",
        http: httpx.AsyncClient,
        storage: "LocalStorage",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self._http = http
        self._storage = storage
        self._clock = clock
        self._session: Session | None = None
        self._loaded = False
        # 串行化会话读取与刷新，并发请求只触发一次刷新
        self._session_lock = asyncio.Lock()
        self._listeners: dict[object, AuthListener] = {}

    @property
    def storage_key(self) -> str:
        return self.config.storage_key

    @property
    def verifier_key(self) -> str:
        return f"{self.config.storage_key}-code-verifier"

    def close(self) -> None:
        """移除所有监听."""
        self._listeners.clear()

    # ---- 会话变化推送 ----

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """注册会话变化回调，返回取消函数."""
        token = object()
        self._listeners[token] = callback

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def _emit(self, event: AuthChangeEvent, session: Session | None) -> None:
        logger.info(f"认证状态变化: {event}")
        for callback in list(self._listeners.values()):
            try:
                callback(event, session)
            except Exception:
                logger.exception(f"认证状态回调异常: {event}")

    # ---- 会话存取 ----

    async def _load_session(self) -> None:
        if self.config.persist_session:
            raw = await self._storage.get_item(self.storage_key)
            if raw:
                try:
                    self._session = Session.model_validate_json(raw)
                except ValidationError:
                    logger.warning("本地会话数据无效，已清除")
                    await self._storage.remove_item(self.storage_key)
        # 读取完成后才标记，避免并发调用方看到空会话
        self._loaded = True

    async def _save_session(self, session: Session) -> None:
        self._session = session
        self._loaded = True
        if self.config.persist_session:
            await self._storage.set_item(self.storage_key, session.model_dump_json())

    async def _clear_session(self) -> None:
        self._session = None
        self._loaded = True
        if self.config.persist_session:
            await self._storage.remove_item(self.storage_key)

    def _parse_session(self, payload: dict[str, Any]) -> Session:
        session = Session.model_validate(payload)
        if session.expires_at is None and session.expires_in:
            session.expires_at = int(self._clock()) + session.expires_in
        return session

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token or self.config.anon_key}"}
        try:
            response = await self._http.request(
                method,
                f"/auth/v1{path}",
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            msg = f"认证服务请求失败: {e}"
            raise AuthError(msg, code="network") from e

        if response.status_code >= 400:
            raise AuthError.from_response(response)

        return response.json() if response.content else {}

    # ---- 公开操作 ----

    async def get_session(self) -> AuthResponse:
        """获取当前会话；令牌过期时自动刷新."""
        async with self._session_lock:
            if not self._loaded:
                await self._load_session()

            session = self._session
            if session is not None and session.is_expired(self._clock()):
                if not self.config.auto_refresh_token:
                    return AuthResponse()
                return await self._refresh()

        return AuthResponse(
            AuthData(session=session, user=session.user if session else None)
        )

    async def access_token(self) -> str | None:
        """当前用户的访问令牌（无会话时为 None）."""
        response = await self.get_session()
        session = response.data.session
        return session.access_token if session else None

    async def refresh_session(self) -> AuthResponse:
        """使用 refresh token 换取新会话."""
        async with self._session_lock:
            if not self._loaded:
                await self._load_session()
            return await self._refresh()

    async def _refresh(self) -> AuthResponse:
        # 调用方需持有 _session_lock
        if self._session is None:
            return AuthResponse(error=AuthError("会话不存在", code="session_missing"))

        try:
            payload = await self._call(
                "POST",
                "/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": self._session.refresh_token},
            )
        except AuthError as e:
            if e.status in (400, 401):
                await self._clear_session()
                self._emit("SIGNED_OUT", None)
            return AuthResponse(error=e)

        session = self._parse_session(payload)
        await self._save_session(session)
        self._emit("TOKEN_REFRESHED", session)
        return AuthResponse(AuthData(session=session, user=session.user))

    async def sign_up(self, email: str, password: str) -> AuthResponse:
        """注册新用户（开启邮箱确认时不返回会话）."""
        try:
            payload = await self._call(
                "POST", "/signup", json={"email": email, "password": password}
            )
        except AuthError as e:
            return AuthResponse(error=e)

        if "access_token" in payload:
            session = self._parse_session(payload)
            await self._save_session(session)
            self._emit("SIGNED_IN", session)
            return AuthResponse(AuthData(session=session, user=session.user))

        user = User.model_validate(payload.get("user") or payload)
        return AuthResponse(AuthData(user=user))

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        """邮箱密码登录."""
        try:
            payload = await self._call(
                "POST",
                "/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
            )
        except AuthError as e:
            return AuthResponse(error=e)

        session = self._parse_session(payload)
        await self._save_session(session)
        self._emit("SIGNED_IN", session)
        return AuthResponse(AuthData(session=session, user=session.user))

    async def sign_out(self) -> AuthResponse:
        """退出登录. 令牌已失效时仍清除本地会话."""
        response = await self.get_session()
        session = response.data.session
        if session is not None:
            try:
                await self._call("POST", "/logout", access_token=session.access_token)
            except AuthError as e:
                if e.status not in (401, 403, 404):
                    return AuthResponse(error=e)

        await self._clear_session()
        self._emit("SIGNED_OUT", None)
        return AuthResponse()

    async def reset_password_for_email(
        self, email: str, redirect_to: str | None = None
    ) -> AuthResponse:
        """发送重置密码邮件."""
        params = {"redirect_to": redirect_to} if redirect_to else None
        try:
            await self._call("POST", "/recover", params=params, json={"email": email})
        except AuthError as e:
            return AuthResponse(error=e)
        return AuthResponse()

    async def update_user(self, password: str | None = None) -> AuthResponse:
        """更新当前用户（目前只支持修改密码）."""
        response = await self.get_session()
        session = response.data.session
        if session is None:
            return AuthResponse(error=AuthError("会话不存在", code="session_missing"))

        body: dict[str, Any] = {}
        if password is not None:
            body["password"] = password

        try:
            payload = await self._call(
                "PUT", "/user", json=body, access_token=session.access_token
            )
        except AuthError as e:
            return AuthResponse(error=e)

        user = User.model_validate(payload)
        session = session.model_copy(update={"user": user})
        await self._save_session(session)
        self._emit("USER_UPDATED", session)
        return AuthResponse(AuthData(user=user, session=session))

    async def sign_in_with_oauth(
        self, provider: str, redirect_to: str | None = None
    ) -> AuthResponse:
        """生成第三方登录地址（PKCE），由调用方跳转."""
        verifier = secrets.token_urlsafe(48)
        await self._storage.set_item(self.verifier_key, verifier)

        query = {
            "provider": provider,
            "code_challenge": _code_challenge(verifier),
            "code_challenge_method": "s256",
        }
        if redirect_to:
            query["redirect_to"] = redirect_to

        url = f"{self.config.url}/auth/v1/authorize?{urlencode(query)}"
        return AuthResponse(AuthData(provider=provider, url=url))

    async def exchange_code_for_session(self, auth_code: str) -> AuthResponse:
        """用回调中的授权码换取会话."""
        verifier = await self._storage.get_item(self.verifier_key)
        if not verifier:
            return AuthResponse(
                error=AuthError("缺少 PKCE code verifier", code="pkce_missing")
            )

        try:
            payload = await self._call(
                "POST",
                "/token",
                params={"grant_type": "pkce"},
                json={"auth_code": auth_code, "code_verifier": verifier},
            )
        except AuthError as e:
            return AuthResponse(error=e)
        finally:
            await self._storage.remove_item(self.verifier_key)

        session = self._parse_session(payload)
        await self._save_session(session)
        self._emit("SIGNED_IN", session)
        return AuthResponse(AuthData(session=session, user=session.user))
