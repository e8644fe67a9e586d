"""测试配置和 fixtures."""

import json
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.supabase import SupabaseClient, SupabaseConfig
from feeddeck.models.auth import User
from feeddeck.stores.auth import AuthStore

SUPABASE_URL = "https://demo.supabase.co"
ANON_KEY = "anon-key"
SITE_ORIGIN = "http://app.test"

# 处理函数可以是 async 函数，用于挂起响应
Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class FakeBackend:
    """模拟 Supabase REST 接口，记录所有请求."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Handler] = {}

    def on(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        status: int = 200,
        handler: Handler | None = None,
    ) -> None:
        """注册一个路由的响应."""
        if handler is None:

            def handler(_request: httpx.Request) -> httpx.Response:
                if json_body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=json_body)

        self._routes[(method, path)] = handler

    def error(self, method: str, path: str, code: str, message: str = "error", status: int = 409) -> None:
        """注册一个 PostgREST 错误响应."""
        self.on(method, path, {"code": code, "message": message}, status=status)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handle(
        self, request: httpx.Request
    ) -> httpx.Response | Awaitable[httpx.Response]:
        self.requests.append(request)
        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"code": "PGRST000", "message": "not found"})
        return handler(request)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


@pytest.fixture
def backend() -> FakeBackend:
    """创建模拟后端."""
    return FakeBackend()


@pytest_asyncio.fixture
async def storage() -> AsyncGenerator[LocalStorage, None]:
    """创建测试用的内存本地存储."""
    local_storage = LocalStorage("sqlite+aiosqlite:///:memory:")
    await local_storage.init()
    yield local_storage
    await local_storage.close()


@pytest_asyncio.fixture
async def client(
    backend: FakeBackend, storage: LocalStorage
) -> AsyncGenerator[SupabaseClient, None]:
    """创建连接模拟后端的 Supabase 客户端."""
    supabase = SupabaseClient(
        SupabaseConfig(url=SUPABASE_URL, anon_key=ANON_KEY),
        storage,
        transport=httpx.MockTransport(backend.handle),
    )
    yield supabase
    await supabase.close()


@pytest.fixture
def user() -> User:
    """测试用户."""
    return User(id="user-1", email="reader@example.com")


@pytest.fixture
def auth_store(client: SupabaseClient) -> AuthStore:
    """未登录的认证 Store."""
    return AuthStore(client, SITE_ORIGIN)


@pytest.fixture
def signed_in(auth_store: AuthStore, user: User) -> AuthStore:
    """已登录的认证 Store."""
    auth_store.user.set(user)
    auth_store.loading.set(False)
    return auth_store


def session_payload(user_id: str = "user-1", expires_in: int = 3600) -> dict[str, Any]:
    """GoTrue 返回的会话 JSON."""
    return {
        "access_token": f"access-{user_id}",
        "refresh_token": f"refresh-{user_id}",
        "token_type": "bearer",
        "expires_in": expires_in,
        "user": {"id": user_id, "email": "reader@example.com"},
    }
