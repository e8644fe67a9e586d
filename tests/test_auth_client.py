"""测试认证客户端."""

import asyncio
from urllib.parse import parse_qs, urlparse

import httpx
from conftest import SUPABASE_URL, FakeBackend, request_json, session_payload

from feeddeck.core.local_storage import LocalStorage
from feeddeck.core.supabase import SupabaseClient, SupabaseConfig
from feeddeck.models.auth import Session


def _record_events(client: SupabaseClient) -> list[str]:
    events: list[str] = []
    client.auth.on_auth_state_change(lambda event, _session: events.append(event))
    return events


class TestSignIn:
    """测试登录与会话持久化."""

    async def test_sign_in_persists_session_and_emits_event(
        self, client: SupabaseClient, backend: FakeBackend, storage: LocalStorage
    ) -> None:
        """登录成功后保存会话并推送 SIGNED_IN."""
        backend.on("POST", "/auth/v1/token", session_payload())
        events = _record_events(client)

        response = await client.auth.sign_in_with_password("reader@example.com", "pw")

        assert response.error is None
        assert response.data.session is not None
        assert response.data.user is not None
        assert response.data.user.id == "user-1"
        assert events == ["SIGNED_IN"]
        request = backend.calls("POST", "/auth/v1/token")[0]
        assert request.url.params["grant_type"] == "password"
        assert request_json(request) == {"email": "reader@example.com", "password": "pw"}
        assert await storage.get_item(client.auth.storage_key) is not None

    async def test_sign_in_error_is_returned_verbatim(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """登录失败时返回 error，不推送事件."""
        backend.on(
            "POST",
            "/auth/v1/token",
            {"error": "invalid_grant", "error_description": "Invalid login credentials"},
            status=400,
        )
        events = _record_events(client)

        response = await client.auth.sign_in_with_password("reader@example.com", "bad")

        assert response.error is not None
        assert response.error.message == "Invalid login credentials"
        assert response.error.status == 400
        assert response.data.session is None
        assert events == []

    async def test_rest_requests_use_user_token(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """登录后表操作携带用户令牌."""
        backend.on("POST", "/auth/v1/token", session_payload())
        backend.on("GET", "/rest/v1/feeds", [])

        await client.auth.sign_in_with_password("reader@example.com", "pw")
        await client.table("feeds").select().execute()

        request = backend.calls("GET", "/rest/v1/feeds")[0]
        assert request.headers["Authorization"] == "Bearer access-user-1"

    async def test_session_restored_from_storage(
        self, backend: FakeBackend, storage: LocalStorage
    ) -> None:
        """新客户端从本地存储恢复会话."""
        session = Session.model_validate(session_payload())
        session.expires_at = 4_000_000_000
        config = SupabaseConfig(url=SUPABASE_URL, anon_key="k")
        await storage.set_item(config.storage_key, session.model_dump_json())

        restored = SupabaseClient(
            config, storage, transport=httpx.MockTransport(backend.handle)
        )
        try:
            response = await restored.auth.get_session()
        finally:
            await restored.close()

        assert response.data.session is not None
        assert response.data.session.access_token == "access-user-1"


class TestRefresh:
    """测试令牌刷新."""

    async def test_expired_session_is_refreshed(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """过期会话在读取时自动刷新."""
        backend.on("POST", "/auth/v1/token", session_payload(expires_in=-60))
        await client.auth.sign_in_with_password("reader@example.com", "pw")

        refreshed = session_payload()
        refreshed["access_token"] = "access-refreshed"
        backend.on("POST", "/auth/v1/token", refreshed)
        events = _record_events(client)

        response = await client.auth.get_session()

        assert response.data.session is not None
        assert response.data.session.access_token == "access-refreshed"
        assert events == ["TOKEN_REFRESHED"]
        assert backend.calls("POST", "/auth/v1/token")[-1].url.params["grant_type"] == (
            "refresh_token"
        )

    async def test_rejected_refresh_signs_out(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """refresh token 失效时清除会话并推送 SIGNED_OUT."""
        backend.on("POST", "/auth/v1/token", session_payload(expires_in=-60))
        await client.auth.sign_in_with_password("reader@example.com", "pw")
        backend.on("POST", "/auth/v1/token", {"error": "invalid_grant"}, status=400)
        events = _record_events(client)

        response = await client.auth.get_session()

        assert response.error is not None
        assert events == ["SIGNED_OUT"]
        assert (await client.auth.get_session()).data.session is None


class TestSignOut:
    """测试退出登录."""

    async def test_sign_out_clears_session(
        self, client: SupabaseClient, backend: FakeBackend, storage: LocalStorage
    ) -> None:
        """退出后本地会话被清除."""
        backend.on("POST", "/auth/v1/token", session_payload())
        backend.on("POST", "/auth/v1/logout", status=204)
        await client.auth.sign_in_with_password("reader@example.com", "pw")
        events = _record_events(client)

        response = await client.auth.sign_out()

        assert response.error is None
        assert events == ["SIGNED_OUT"]
        assert await storage.get_item(client.auth.storage_key) is None
        logout = backend.calls("POST", "/auth/v1/logout")[0]
        assert logout.headers["Authorization"] == "Bearer access-user-1"


class TestPasswordFlows:
    """测试注册/找回/修改密码."""

    async def test_sign_up_without_confirmation_returns_user_only(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """需要邮箱确认时只返回用户."""
        backend.on("POST", "/auth/v1/signup", {"id": "new-user", "email": "a@b.c"})

        response = await client.auth.sign_up("a@b.c", "pw")

        assert response.error is None
        assert response.data.user is not None
        assert response.data.user.id == "new-user"
        assert response.data.session is None

    async def test_reset_password_passes_redirect(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """找回密码请求携带跳转地址."""
        backend.on("POST", "/auth/v1/recover", {})

        response = await client.auth.reset_password_for_email(
            "a@b.c", redirect_to="http://app.test/auth/reset-password"
        )

        assert response.error is None
        request = backend.calls("POST", "/auth/v1/recover")[0]
        assert request.url.params["redirect_to"] == "http://app.test/auth/reset-password"

    async def test_update_user_requires_session(self, client: SupabaseClient) -> None:
        """未登录时修改密码返回错误."""
        response = await client.auth.update_user(password="new")
        assert response.error is not None
        assert response.error.code == "session_missing"

    async def test_update_user_emits_event(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """修改密码成功推送 USER_UPDATED."""
        backend.on("POST", "/auth/v1/token", session_payload())
        backend.on("PUT", "/auth/v1/user", {"id": "user-1", "email": "reader@example.com"})
        await client.auth.sign_in_with_password("reader@example.com", "pw")
        events = _record_events(client)

        response = await client.auth.update_user(password="new")

        assert response.error is None
        assert events == ["USER_UPDATED"]
        assert request_json(backend.calls("PUT", "/auth/v1/user")[0]) == {"password": "new"}


class TestOAuth:
    """测试第三方登录（PKCE）."""

    async def test_oauth_url_and_code_exchange(
        self, client: SupabaseClient, backend: FakeBackend, storage: LocalStorage
    ) -> None:
        """生成授权地址，并用授权码和 verifier 换取会话."""
        response = await client.auth.sign_in_with_oauth(
            "google", redirect_to="http://app.test/auth/callback"
        )

        assert response.data.url is not None
        url = urlparse(response.data.url)
        query = parse_qs(url.query)
        assert url.path == "/auth/v1/authorize"
        assert query["provider"] == ["google"]
        assert query["redirect_to"] == ["http://app.test/auth/callback"]
        assert query["code_challenge_method"] == ["s256"]

        verifier = await storage.get_item(client.auth.verifier_key)
        assert verifier is not None

        backend.on("POST", "/auth/v1/token", session_payload())
        exchanged = await client.auth.exchange_code_for_session("auth-code")

        assert exchanged.error is None
        assert exchanged.data.session is not None
        request = backend.calls("POST", "/auth/v1/token")[0]
        assert request.url.params["grant_type"] == "pkce"
        assert request_json(request) == {"auth_code": "auth-code", "code_verifier": verifier}
        assert await storage.get_item(client.auth.verifier_key) is None

    async def test_exchange_without_verifier_fails(self, client: SupabaseClient) -> None:
        """没有 verifier 时换取失败."""
        response = await client.auth.exchange_code_for_session("auth-code")
        assert response.error is not None
        assert response.error.code == "pkce_missing"


class TestConcurrentRequests:
    """测试并发请求下的会话读取与刷新."""

    async def test_expired_session_refreshed_once(
        self, client: SupabaseClient, backend: FakeBackend
    ) -> None:
        """会话过期时并发请求只触发一次刷新，且都不抛异常."""
        backend.on("POST", "/auth/v1/token", session_payload(expires_in=-60))
        await client.auth.sign_in_with_password("reader@example.com", "pw")

        refreshed = session_payload()
        refreshed["access_token"] = "access-refreshed"
        backend.on("POST", "/auth/v1/token", refreshed)
        backend.on("PATCH", "/rest/v1/feed_collections", status=204)

        responses = await asyncio.gather(
            *(
                client.table("feed_collections")
                .update({"display_order": index})
                .eq("id", f"c{index}")
                .execute()
                for index in range(5)
            )
        )

        assert [r.error for r in responses] == [None] * 5
        refresh_calls = [
            r
            for r in backend.calls("POST", "/auth/v1/token")
            if r.url.params["grant_type"] == "refresh_token"
        ]
        assert len(refresh_calls) == 1
        assert {
            r.headers["Authorization"]
            for r in backend.calls("PATCH", "/rest/v1/feed_collections")
        } == {"Bearer access-refreshed"}

    async def test_persisted_session_used_by_concurrent_requests(
        self, backend: FakeBackend, storage: LocalStorage
    ) -> None:
        """新客户端的并发请求都等待本地会话读取完成."""
        session = Session.model_validate(session_payload())
        session.expires_at = 4_000_000_000
        config = SupabaseConfig(url=SUPABASE_URL, anon_key="anon")
        await storage.set_item(config.storage_key, session.model_dump_json())
        backend.on("GET", "/rest/v1/feeds", [])

        restored = SupabaseClient(
            config, storage, transport=httpx.MockTransport(backend.handle)
        )
        try:
            await asyncio.gather(
                restored.table("feeds").select().execute(),
                restored.table("feeds").select().execute(),
            )
        finally:
            await restored.close()

        assert [
            r.headers["Authorization"] for r in backend.calls("GET", "/rest/v1/feeds")
        ] == ["Bearer access-user-1", "Bearer access-user-1"]
