"""FeedDeck - RSS 阅读器客户端."""

__version__ = "0.1.0"
