"""entries 与 user_entry_status 表结构."""

from typing import Any

from sqlmodel import Field, SQLModel


class EntryRow(SQLModel):
    """文章条目."""

    id: str
    feed_id: str
    guid: str | None = None
    title: str | None = None
    url: str | None = None
    author: str | None = None
    description: str | None = None
    content: str | None = None
    attachments: Any | None = None
    media: Any | None = None
    published_at: str | None = None
    inserted_at: str | None = None
    created_at: str | None = None


class EntryInsert(EntryRow):
    """entries 插入结构."""


class EntryUpdate(SQLModel):
    """entries 更新结构."""

    feed_id: str | None = None
    guid: str | None = None
    title: str | None = None
    url: str | None = None
    author: str | None = None
    description: str | None = None
    content: str | None = None
    attachments: Any | None = None
    media: Any | None = None
    published_at: str | None = None


class UserEntryStatusRow(SQLModel):
    """用户对条目的已读/收藏状态."""

    id: str
    user_id: str
    entry_id: str
    is_read: bool | None = Field(default=None)
    is_starred: bool | None = Field(default=None)
    read_at: str | None = None
    starred_at: str | None = None


class UserEntryStatusInsert(SQLModel):
    """user_entry_status 插入结构."""

    user_id: str
    entry_id: str
    id: str | None = None
    is_read: bool | None = None
    is_starred: bool | None = None
    read_at: str | None = None
    starred_at: str | None = None


class UserEntryStatusUpdate(SQLModel):
    """user_entry_status 更新结构."""

    is_read: bool | None = None
    is_starred: bool | None = None
    read_at: str | None = None
    starred_at: str | None = None
