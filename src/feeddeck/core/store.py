"""响应式 Store 基础类型.

Store 持有一个当前快照，订阅者在值变化时被同步调用。
``subscribe`` 会立即以当前值调用一次回调，并返回取消订阅函数。

带 ``start`` 的 Readable 在第一个订阅者出现时启动外部监听，
最后一个订阅者离开时调用 ``start`` 返回的清理函数。
"""

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar, cast

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscriber = Callable[[], None]
StartNotifier = Callable[[Callable[[T], None]], Unsubscriber | None]


def _noop() -> None:
    return None


class Readable(Generic[T]):
    """只读 Store."""

    def __init__(self, value: T, start: StartNotifier[T] | None = None) -> None:
        self._value = value
        self._start = start
        self._stop: Unsubscriber | None = None
        self._subscribers: dict[object, Subscriber[T]] = {}

    def _set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        for callback in list(self._subscribers.values()):
            callback(value)

    def subscribe(self, callback: Subscriber[T]) -> Unsubscriber:
        """订阅值变化，返回取消订阅函数."""
        if not self._subscribers and self._start is not None:
            self._stop = self._start(self._set) or _noop

        token = object()
        self._subscribers[token] = callback
        callback(self._value)

        def unsubscribe() -> None:
            if self._subscribers.pop(token, None) is None:
                return
            if not self._subscribers and self._stop is not None:
                stop, self._stop = self._stop, None
                stop()

        return unsubscribe

    def get(self) -> T:
        """读取当前快照."""
        if self._subscribers or self._start is None:
            return self._value
        unsubscribe = self.subscribe(lambda _: None)
        value = self._value
        unsubscribe()
        return value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class Writable(Readable[T]):
    """可写 Store."""

    def set(self, value: T) -> None:
        """设置新值并通知订阅者."""
        self._set(value)

    def update(self, updater: Callable[[T], T]) -> None:
        """基于当前值计算新值."""
        self._set(updater(self._value))


class Derived(Readable[T]):
    """由一个或多个 Store 计算得到的只读 Store."""

    def __init__(
        self,
        stores: Sequence[Readable[Any]],
        fn: Callable[..., T],
    ) -> None:
        self._sources = list(stores)
        self._fn = fn

        def start(set_value: Callable[[T], None]) -> Unsubscriber:
            values: list[Any] = [None] * len(self._sources)
            ready = False

            def listener(index: int) -> Subscriber[Any]:
                def on_change(value: Any) -> None:
                    values[index] = value
                    if ready:
                        set_value(self._fn(*values))

                return on_change

            unsubscribers = [
                source.subscribe(listener(i)) for i, source in enumerate(self._sources)
            ]
            ready = True
            set_value(self._fn(*values))

            def stop() -> None:
                for unsubscribe in unsubscribers:
                    unsubscribe()

            return stop

        super().__init__(cast(T, None), start)

    def get(self) -> T:
        if self._subscribers:
            return self._value
        return self._fn(*(source.get() for source in self._sources))
