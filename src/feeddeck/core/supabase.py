"""Supabase 客户端（PostgREST 表操作 + 远程函数）."""

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx

if TYPE_CHECKING:
    from feeddeck.core.auth_client import AuthClient
    from feeddeck.core.local_storage import LocalStorage

logger = logging.getLogger(__name__)

# Postgres 唯一约束冲突
UNIQUE_VIOLATION = "23505"
# 网络层错误（请求未到达后端）
NETWORK_ERROR = "NETWORK"


@dataclass
class SupabaseConfig:
    """Supabase 连接配置."""

    url: str
    anon_key: str
    persist_session: bool = True
    auto_refresh_token: bool = True

    @property
    def project_ref(self) -> str:
        host = urlparse(self.url).hostname or ""
        return host.split(".")[0] if host else "local"

    @property
    def storage_key(self) -> str:
        """会话在本地存储中的键."""
        return f"sb-{self.project_ref}-auth-token"


class SupabaseError(Exception):
    """PostgREST 错误."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status = status

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SupabaseError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            message=body.get("message") or response.text or response.reason_phrase,
            code=body.get("code"),
            details=body.get("details"),
            hint=body.get("hint"),
            status=response.status_code,
        )

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    def __repr__(self) -> str:
        return f"SupabaseError(code={self.code!r}, message={self.message!r})"


@dataclass
class ApiResponse:
    """表操作/远程函数的返回：data 与 error 二选一."""

    data: Any = None
    error: SupabaseError | None = None


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _quote_list_value(value: Any) -> str:
    text = _format_value(value)
    if re.search(r'[,()"\s]', text):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


class QueryBuilder:
    """链式构造一次 PostgREST 请求."""

    def __init__(
        self,
        client: "SupabaseClient",
        path: str,
        method: str = "GET",
        json: Any = None,
    ) -> None:
        self._client = client
        self._path = path
        self._method = method
        self._json = json
        self._params: list[tuple[str, str]] = []
        self._prefer: list[str] = []
        self._headers: dict[str, str] = {}
        self._maybe_single = False

    def select(self, columns: str = "*") -> "QueryBuilder":
        """选择返回列；用于写操作时要求返回写入后的行."""
        self._params.append(("select", re.sub(r"\s+", "", columns)))
        if self._method != "GET" and not self._path.startswith("/rest/v1/rpc/"):
            self._prefer = [p for p in self._prefer if not p.startswith("return=")]
            self._prefer.append("return=representation")
        return self

    def insert(self, payload: dict[str, Any] | list[dict[str, Any]]) -> "QueryBuilder":
        self._method = "POST"
        self._json = payload
        self._prefer.append("return=minimal")
        return self

    def upsert(
        self,
        payload: dict[str, Any] | list[dict[str, Any]],
        on_conflict: str | None = None,
    ) -> "QueryBuilder":
        self._method = "POST"
        self._json = payload
        self._prefer.extend(["resolution=merge-duplicates", "return=minimal"])
        if on_conflict:
            self._params.append(("on_conflict", on_conflict))
        return self

    def update(self, payload: dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._json = payload
        self._prefer.append("return=minimal")
        return self

    def delete(self) -> "QueryBuilder":
        self._method = "DELETE"
        self._prefer.append("return=minimal")
        return self

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"eq.{_format_value(value)}"))
        return self

    def in_(self, column: str, values: list[Any]) -> "QueryBuilder":
        joined = ",".join(_quote_list_value(v) for v in values)
        self._params.append((column, f"in.({joined})"))
        return self

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        direction = "asc" if ascending else "desc"
        self._params.append(("order", f"{column}.{direction}"))
        return self

    def single(self) -> "QueryBuilder":
        """要求恰好返回一行（以对象形式）."""
        self._headers["Accept"] = "application/vnd.pgrst.object+json"
        return self

    def maybe_single(self) -> "QueryBuilder":
        """返回零或一行；零行时 data 为 None."""
        self._maybe_single = True
        return self

    async def execute(self) -> ApiResponse:
        """发送请求. 后端错误和网络错误都以 ApiResponse.error 返回."""
        headers = dict(self._headers)
        if self._prefer:
            headers["Prefer"] = ",".join(self._prefer)

        try:
            response = await self._client.request(
                self._method,
                self._path,
                params=self._params,
                json=self._json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning(f"请求失败: {self._method} {self._path} - {e}")
            return ApiResponse(error=SupabaseError(str(e), code=NETWORK_ERROR))

        if response.status_code >= 400:
            return ApiResponse(error=SupabaseError.from_response(response))

        data = response.json() if response.content else None

        if self._maybe_single and isinstance(data, list):
            if len(data) > 1:
                msg = f"期望最多一行，实际返回 {len(data)} 行"
                return ApiResponse(
                    error=SupabaseError(msg, code="PGRST116", status=406)
                )
            data = data[0] if data else None

        return ApiResponse(data=data)


class SupabaseClient:
    """Supabase 客户端句柄（全应用唯一）."""

    def __init__(
        self,
        config: SupabaseConfig,
        storage: "LocalStorage",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        from feeddeck.core.auth_client import AuthClient

        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.url,
            timeout=30.0,
            transport=transport,
            headers={"apikey": config.anon_key},
        )
        self.auth: AuthClient = AuthClient(config, self._client, storage)

    async def close(self) -> None:
        """关闭客户端."""
        self.auth.close()
        await self._client.aclose()

    def table(self, name: str) -> QueryBuilder:
        """对表发起操作."""
        return QueryBuilder(self, f"/rest/v1/{name}")

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> QueryBuilder:
        """调用远程函数."""
        return QueryBuilder(
            self,
            f"/rest/v1/rpc/{function}",
            method="POST",
            json=params or {},
        )

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """带认证头发送请求（有会话时使用用户令牌，否则使用匿名 key）."""
        token = await self.auth.access_token() or self.config.anon_key
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {token}"
        return await self._client.request(method, path, headers=headers, **kwargs)
