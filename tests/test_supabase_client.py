"""测试 Supabase 表操作与远程函数客户端."""

import httpx
from conftest import ANON_KEY, FakeBackend, request_json

from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.supabase import (
    NETWORK_ERROR,
    SupabaseClient,
    SupabaseConfig,
)


class TestQueryBuilder:
    """测试请求构造."""

    async def test_select_with_filters(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """select + eq + in + order 转换为 PostgREST 查询参数."""
        backend.on("GET", "/rest/v1/feeds", [{"id": "f1"}])

        response = await (
            client.table("feeds")
            .select("id, title")
            .eq("user_id", "u1")
            .in_("id", ["f1", "f2"])
            .order("subscribed_at", ascending=False)
            .execute()
        )

        assert response.error is None
        assert response.data == [{"id": "f1"}]
        request = backend.calls("GET", "/rest/v1/feeds")[0]
        params = request.url.params
        assert params["select"] == "id,title"
        assert params["user_id"] == "eq.u1"
        assert params["id"] == "in.(f1,f2)"
        assert params["order"] == "subscribed_at.desc"
        assert request.headers["apikey"] == ANON_KEY
        assert request.headers["Authorization"] == f"Bearer {ANON_KEY}"

    async def test_insert_select_single(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """insert().select().single() 请求返回写入后的对象."""
        backend.on("POST", "/rest/v1/feed_collections", {"id": "c1"}, status=201)

        response = await (
            client.table("feed_collections")
            .insert({"name": "Tech"})
            .select("id")
            .single()
            .execute()
        )

        assert response.data == {"id": "c1"}
        request = backend.calls("POST", "/rest/v1/feed_collections")[0]
        assert request_json(request) == {"name": "Tech"}
        assert request.headers["Prefer"] == "return=representation"
        assert request.headers["Accept"] == "application/vnd.pgrst.object+json"

    async def test_upsert_sets_conflict_target(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """upsert 使用 merge-duplicates 和 on_conflict."""
        backend.on("POST", "/rest/v1/user_settings", status=201)

        response = await (
            client.table("user_settings")
            .upsert({"user_id": "u1", "theme": "dark"}, on_conflict="user_id")
            .execute()
        )

        assert response.error is None
        assert response.data is None
        request = backend.calls("POST", "/rest/v1/user_settings")[0]
        assert request.url.params["on_conflict"] == "user_id"
        assert "resolution=merge-duplicates" in request.headers["Prefer"]

    async def test_rpc_posts_params(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """rpc 以 JSON 提交参数."""
        backend.on("POST", "/rest/v1/rpc/get_unread_counts", [])

        await client.rpc("get_unread_counts", {"user_id_param": "u1"}).execute()

        request = backend.calls("POST", "/rest/v1/rpc/get_unread_counts")[0]
        assert request_json(request) == {"user_id_param": "u1"}

    async def test_maybe_single_returns_none_for_no_rows(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """maybe_single 在没有行时返回 None."""
        backend.on("GET", "/rest/v1/user_settings", [])

        response = await (
            client.table("user_settings").select("theme").maybe_single().execute()
        )

        assert response.error is None
        assert response.data is None


class TestErrors:
    """测试错误返回."""

    async def test_backend_error_is_returned_not_raised(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """后端错误通过 response.error 返回."""
        backend.error("POST", "/rest/v1/feed_collections", "23505", "duplicate key")

        response = await client.table("feed_collections").insert({}).execute()

        assert response.data is None
        assert response.error is not None
        assert response.error.code == "23505"
        assert response.error.is_unique_violation is True
        assert response.error.status == 409

    async def test_network_error_is_returned(self, storage: LocalStorage) -> None:
        """网络错误转换为 NETWORK 错误."""

        def fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        supabase = SupabaseClient(
            SupabaseConfig(url="https://demo.supabase.co", anon_key="k"),
            storage,
            transport=httpx.MockTransport(fail),
        )
        try:
            response = await supabase.table("feeds").select().execute()
        finally:
            await supabase.close()

        assert response.error is not None
        assert response.error.code == NETWORK_ERROR


class TestSupabaseConfig:
    """测试连接配置."""

    def test_storage_key_uses_project_ref(self) -> None:
        """会话存储键包含项目标识."""
        config = SupabaseConfig(url="https://abcd.supabase.co", anon_key="k")
        assert config.project_ref == "abcd"
        assert config.storage_key == "sb-abcd-auth-token"
