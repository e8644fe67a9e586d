"""feed_collections 与 collection_feeds 表结构."""

from sqlmodel import Field, SQLModel


class FeedCollectionRow(SQLModel):
    """用户自定义的订阅分组."""

    id: str
    user_id: str
    name: str = Field(description="名称，(user_id, name) 唯一")
    icon_name: str = "Folder"
    display_order: int = 0
    created_at: str | None = None
    updated_at: str | None = None


class FeedCollectionInsert(SQLModel):
    """feed_collections 插入结构."""

    user_id: str
    name: str
    icon_name: str | None = None
    display_order: int | None = None


class FeedCollectionUpdate(SQLModel):
    """feed_collections 更新结构."""

    name: str | None = None
    icon_name: str | None = None
    display_order: int | None = None
    updated_at: str | None = None


class CollectionFeedRow(SQLModel):
    """分组成员关系，(collection_id, feed_id) 唯一."""

    collection_id: str
    feed_id: str
    id: str | None = None
    added_at: str | None = None


class CollectionFeedInsert(SQLModel):
    """collection_feeds 插入结构."""

    collection_id: str
    feed_id: str
