"""认证相关模型."""

from typing import Any

from pydantic import BaseModel, Field


class User(BaseModel):
    """认证用户."""

    id: str
    email: str | None = None
    role: str | None = None
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: str | None = None


class Session(BaseModel):
    """认证会话（令牌 + 用户）."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: User | None = None

    def is_expired(self, now: float, margin: float = 10) -> bool:
        """令牌是否已过期（提前 margin 秒视为过期）."""
        if self.expires_at is None:
            return False
        return self.expires_at - margin <= now


class AuthData(BaseModel):
    """认证操作返回的数据."""

    user: User | None = None
    session: Session | None = None
    provider: str | None = None
    url: str | None = None
