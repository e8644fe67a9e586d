"""user_subscriptions 表结构."""

from sqlmodel import SQLModel

from feeddeck.models.feed import FeedRow


class UserSubscriptionRow(SQLModel):
    """用户订阅关系."""

    id: str
    user_id: str
    feed_id: str
    subscribed_at: str | None = None


class UserSubscriptionInsert(SQLModel):
    """user_subscriptions 插入结构."""

    user_id: str
    feed_id: str
    id: str | None = None
    subscribed_at: str | None = None


class UserSubscriptionUpdate(SQLModel):
    """user_subscriptions 更新结构."""

    user_id: str | None = None
    feed_id: str | None = None
    subscribed_at: str | None = None


class SubscriptionWithFeed(SQLModel):
    """带嵌入 feed 行的订阅查询结果."""

    feed_id: str
    feeds: FeedRow | list[FeedRow] | None = None

    @property
    def feed(self) -> FeedRow | None:
        """嵌入的 feed（一对一关系也可能以数组形式返回）."""
        if isinstance(self.feeds, list):
            return self.feeds[0] if self.feeds else None
        return self.feeds
