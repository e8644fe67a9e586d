"""user_settings 表结构."""

from sqlmodel import Field, SQLModel


class UserSettingsRow(SQLModel):
    """每个用户一行的偏好设置."""

    user_id: str
    theme: str | None = Field(default=None, description="system|light|dark")
    sidebar_collapsed: bool | None = None
    article_panel_width: int | None = None
    preferred_model: str | None = None
    openrouter_api_key: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class UserSettingsInsert(SQLModel):
    """user_settings 插入结构."""

    user_id: str
    theme: str | None = None
    sidebar_collapsed: bool | None = None
    article_panel_width: int | None = None
    preferred_model: str | None = None
    openrouter_api_key: str | None = None
    updated_at: str | None = None


class UserSettingsUpdate(SQLModel):
    """user_settings 更新结构."""

    theme: str | None = None
    sidebar_collapsed: bool | None = None
    article_panel_width: int | None = None
    preferred_model: str | None = None
    openrouter_api_key: str | None = None
    updated_at: str | None = None
