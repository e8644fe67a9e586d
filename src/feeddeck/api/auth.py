"""认证回调 API."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from feeddeck.context import AppContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_context(request: Request) -> AppContext:
    """获取应用上下文（用于依赖注入）."""
    return request.app.state.context


def _redirect(location: str) -> RedirectResponse:
    return RedirectResponse(location, status_code=303)


def _login_with_error(message: str) -> RedirectResponse:
    return _redirect(f"/auth/login?error={quote(message, safe='')}")


@router.get("/callback")
async def auth_callback(
    code: str | None = None,
    flow_type: str | None = Query(default=None, alias="type"),
    error: str | None = None,
    error_description: str | None = None,
) -> RedirectResponse:
    """认证回调：按错误 / 找回密码 / 授权码分别跳转."""
    # 第三方登录错误（如用户拒绝授权）
    if error:
        return _login_with_error(error_description or error)

    if flow_type == "recovery":
        return _redirect("/auth/reset-password")

    # 授权码转交给完成页，用 PKCE verifier 换取会话
    if code:
        return _redirect(f"/auth/callback/complete?code={quote(code, safe='')}")

    return _redirect("/")


@router.get("/callback/complete")
async def auth_callback_complete(
    code: str,
    context: AppContext = Depends(get_context),
) -> RedirectResponse:
    """用授权码换取会话."""
    response = await context.auth.exchange_code_for_session(code)
    if response.error:
        logger.warning(f"授权码换取会话失败: {response.error}")
        return _login_with_error(response.error.message)
    return _redirect("/")
