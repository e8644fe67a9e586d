"""feeds 表结构."""

from sqlmodel import Field, SQLModel


class FeedRow(SQLModel):
    """订阅源（全局共享，由抓取服务维护）."""

    id: str
    url: str = Field(description="Feed URL")
    title: str | None = None
    description: str | None = None
    category: str | None = Field(default=None, description="后端分配的分类")
    image: str | None = Field(default=None, description="图标 URL")
    site_url: str | None = None
    subscriber_count: int | None = None
    ttl: int | None = None
    etag_header: str | None = None
    last_modified_header: str | None = None
    last_entry_at: str | None = None
    checked_at: str | None = None
    error_at: str | None = None
    error_message: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class FeedInsert(FeedRow):
    """feeds 插入结构."""


class FeedUpdate(SQLModel):
    """feeds 更新结构."""

    id: str | None = None
    url: str | None = None
    title: str | None = None
    description: str | None = None
    category: str | None = None
    image: str | None = None
    site_url: str | None = None
    subscriber_count: int | None = None
    ttl: int | None = None
    etag_header: str | None = None
    last_modified_header: str | None = None
    last_entry_at: str | None = None
    checked_at: str | None = None
    error_at: str | None = None
    error_message: str | None = None
    updated_at: str | None = None
