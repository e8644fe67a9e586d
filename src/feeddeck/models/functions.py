"""远程函数（RPC）的参数和返回结构."""

from sqlmodel import SQLModel

# 远程函数名
GET_UNREAD_COUNTS = "get_unread_counts"
GET_USER_COLLECTIONS_WITH_COUNTS = "get_user_collections_with_counts"
GET_PENDING_SUGGESTIONS_COUNT = "get_pending_suggestions_count"
GET_USER_TIMELINE = "get_user_timeline"
GET_DISCOVERY_FEEDS = "get_discovery_feeds"
MARK_ENTRY_READ = "mark_entry_read"
TOGGLE_ENTRY_STAR = "toggle_entry_star"


class UserIdArgs(SQLModel):
    """只需要用户 ID 的函数参数."""

    user_id_param: str


class UnreadCount(SQLModel):
    """get_unread_counts 返回行."""

    feed_id: str
    unread_count: int = 0


class CollectionWithCounts(SQLModel):
    """get_user_collections_with_counts 返回行."""

    collection_id: str
    collection_name: str
    icon_name: str = "Folder"
    display_order: int = 0
    feed_count: int = 0
    unread_count: int = 0


class TimelineArgs(SQLModel):
    """get_user_timeline 参数."""

    user_id_param: str
    feed_id_filter: str | None = None
    limit_param: int | None = None
    offset_param: int | None = None
    starred_only: bool | None = None
    unread_only: bool | None = None


class TimelineEntry(SQLModel):
    """get_user_timeline 返回行."""

    entry_id: str
    feed_id: str
    entry_title: str | None = None
    entry_url: str | None = None
    entry_author: str | None = None
    entry_content: str | None = None
    entry_description: str | None = None
    entry_published_at: str | None = None
    feed_title: str | None = None
    feed_image: str | None = None
    feed_category: str | None = None
    is_read: bool = False
    is_starred: bool = False


class DiscoveryArgs(SQLModel):
    """get_discovery_feeds 参数."""

    category_filter: str | None = None
    search_query: str | None = None
    limit_param: int | None = None
    offset_param: int | None = None


class DiscoveryFeed(SQLModel):
    """get_discovery_feeds 返回行."""

    feed_id: str
    feed_title: str | None = None
    feed_description: str | None = None
    feed_category: str | None = None
    feed_image: str | None = None
    feed_site_url: str | None = None
    last_entry_at: str | None = None
    subscriber_count: int = 0


class EntryActionArgs(SQLModel):
    """mark_entry_read / toggle_entry_star 参数."""

    entry_id_param: str
    user_id_param: str
