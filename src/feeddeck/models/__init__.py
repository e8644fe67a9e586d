"""数据模型（远程数据库表结构 + 本地存储）."""

from feeddeck.models.auth import AuthData, Session, User
from feeddeck.models.chat import ChatMessageInsert, ChatMessageRow, ChatMessageUpdate
from feeddeck.models.collection import (
    CollectionFeedInsert,
    CollectionFeedRow,
    FeedCollectionInsert,
    FeedCollectionRow,
    FeedCollectionUpdate,
)
from feeddeck.models.entry import (
    EntryInsert,
    EntryRow,
    EntryUpdate,
    UserEntryStatusInsert,
    UserEntryStatusRow,
    UserEntryStatusUpdate,
)
from feeddeck.models.feed import FeedInsert, FeedRow, FeedUpdate
from feeddeck.models.functions import (
    CollectionWithCounts,
    DiscoveryArgs,
    DiscoveryFeed,
    EntryActionArgs,
    TimelineArgs,
    TimelineEntry,
    UnreadCount,
    UserIdArgs,
)
from feeddeck.models.local_item import LocalItem
from feeddeck.models.subscription import (
    SubscriptionWithFeed,
    UserSubscriptionInsert,
    UserSubscriptionRow,
    UserSubscriptionUpdate,
)
from feeddeck.models.user_settings import (
    UserSettingsInsert,
    UserSettingsRow,
    UserSettingsUpdate,
)

__all__ = [
    "AuthData",
    "ChatMessageInsert",
    "ChatMessageRow",
    "ChatMessageUpdate",
    "CollectionFeedInsert",
    "CollectionFeedRow",
    "CollectionWithCounts",
    "DiscoveryArgs",
    "DiscoveryFeed",
    "EntryActionArgs",
    "EntryInsert",
    "EntryRow",
    "EntryUpdate",
    "FeedCollectionInsert",
    "FeedCollectionRow",
    "FeedCollectionUpdate",
    "FeedInsert",
    "FeedRow",
    "FeedUpdate",
    "LocalItem",
    "Session",
    "SubscriptionWithFeed",
    "TimelineArgs",
    "TimelineEntry",
    "UnreadCount",
    "User",
    "UserEntryStatusInsert",
    "UserEntryStatusRow",
    "UserEntryStatusUpdate",
    "UserIdArgs",
    "UserSettingsInsert",
    "UserSettingsRow",
    "UserSettingsUpdate",
    "UserSubscriptionInsert",
    "UserSubscriptionRow",
    "UserSubscriptionUpdate",
]
