"""chat_messages 表结构."""

from sqlmodel import SQLModel


class ChatMessageRow(SQLModel):
    """AI 对话消息."""

    id: str
    user_id: str
    role: str
    content: str
    context_type: str
    context_id: str | None = None
    created_at: str | None = None


class ChatMessageInsert(SQLModel):
    """chat_messages 插入结构."""

    user_id: str
    role: str
    content: str
    context_type: str
    context_id: str | None = None
    id: str | None = None
    created_at: str | None = None


class ChatMessageUpdate(SQLModel):
    """chat_messages 更新结构."""

    role: str | None = None
    content: str | None = None
    context_type: str | None = None
    context_id: str | None = None
