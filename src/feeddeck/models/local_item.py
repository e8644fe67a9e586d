"""本地存储条目模型."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class LocalItem(SQLModel, table=True):
    """设备本地键值存储（对应浏览器的 localStorage）."""

    __tablename__ = "local_items"  # type: ignore[assignment]

    key: str = Field(primary_key=True, description="存储键")
    value: str = Field(description="存储值")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
