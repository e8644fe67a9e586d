"""应用状态 Store."""

from feeddeck.stores.auth import AuthStore
from feeddeck.stores.collections import (
    Collection,
    CollectionError,
    CollectionFeed,
    CollectionsStore,
    DuplicateCollectionError,
)
from feeddeck.stores.screen_size import ScreenSizeStore
from feeddeck.stores.sidebar import FeedCategorizer, FeedWithUnread, SidebarStore
from feeddeck.stores.theme import ThemeStore, resolve_theme
from feeddeck.stores.toast import Toast, ToastStore

__all__ = [
    "AuthStore",
    "Collection",
    "CollectionError",
    "CollectionFeed",
    "CollectionsStore",
    "DuplicateCollectionError",
    "FeedCategorizer",
    "FeedWithUnread",
    "ScreenSizeStore",
    "SidebarStore",
    "ThemeStore",
    "Toast",
    "ToastStore",
    "resolve_theme",
]
