"""消息提示 Store."""

import asyncio
import uuid
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel

from feeddeck.core.store import Writable

ToastType = Literal["success", "error", "warning", "info"]


class Toast(BaseModel):
    """一条提示."""

    id: str
    message: str
    type: ToastType = "info"
    duration: int = 4000


class ToastStore:
    """按添加顺序排列的提示队列.

    duration 大于 0 时到期自动移除；为 0 时一直保留到手动移除。
    """

    def __init__(self, default_duration: int = 4000) -> None:
        self.default_duration = default_duration
        self.toasts: Writable[tuple[Toast, ...]] = Writable(())
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def subscribe(self, callback: Callable[[tuple[Toast, ...]], None]) -> Callable[[], None]:
        return self.toasts.subscribe(callback)

    def add(
        self,
        message: str,
        type: ToastType = "info",
        duration: int | None = None,
    ) -> str:
        """添加提示，返回 ID. 自动过期需要在事件循环中调用."""
        if duration is None:
            duration = self.default_duration

        # 先取事件循环，没有循环时不修改队列
        loop = asyncio.get_running_loop() if duration > 0 else None

        toast_id = str(uuid.uuid4())
        toast = Toast(id=toast_id, message=message, type=type, duration=duration)
        self.toasts.update(lambda toasts: (*toasts, toast))

        if loop is not None:
            self._timers[toast_id] = loop.call_later(
                duration / 1000, self.remove, toast_id
            )

        return toast_id

    def remove(self, toast_id: str) -> None:
        """移除提示（不存在时忽略）."""
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        self.toasts.update(lambda toasts: tuple(t for t in toasts if t.id != toast_id))

    def clear(self) -> None:
        """移除全部提示."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self.toasts.set(())

    def success(self, message: str, duration: int | None = None) -> str:
        return self.add(message, "success", duration)

    def error(self, message: str, duration: int | None = None) -> str:
        return self.add(message, "error", duration)

    def warning(self, message: str, duration: int | None = None) -> str:
        return self.add(message, "warning", duration)

    def info(self, message: str, duration: int | None = None) -> str:
        return self.add(message, "info", duration)
