"""系统外观与视口信号源."""

from collections.abc import Callable
from typing import Protocol

Listener = Callable[[bool], None]


class MediaQuery(Protocol):
    """媒体查询（如 prefers-color-scheme: dark、orientation: landscape）."""

    @property
    def matches(self) -> bool: ...

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """注册变化回调，返回移除函数."""
        ...


class Viewport(Protocol):
    """视口：宽度 + 横竖屏."""

    @property
    def width(self) -> int: ...

    @property
    def orientation(self) -> MediaQuery: ...

    def add_resize_listener(self, listener: Callable[[int], None]) -> Callable[[], None]:
        """注册尺寸变化回调，返回移除函数."""
        ...


class StaticMediaQuery:
    """由调用方驱动的媒体查询."""

    def __init__(self, matches: bool = False) -> None:
        self._matches = matches
        self._listeners: dict[object, Listener] = {}

    @property
    def matches(self) -> bool:
        return self._matches

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        token = object()
        self._listeners[token] = listener

        def remove() -> None:
            self._listeners.pop(token, None)

        return remove

    def emit(self, matches: bool) -> None:
        """模拟一次 change 事件."""
        self._matches = matches
        for listener in list(self._listeners.values()):
            listener(matches)


class StaticViewport:
    """由调用方驱动的视口."""

    def __init__(self, width: int, landscape: bool = False) -> None:
        self._width = width
        self._orientation = StaticMediaQuery(landscape)
        self._listeners: dict[object, Callable[[int], None]] = {}

    @property
    def width(self) -> int:
        return self._width

    @property
    def orientation(self) -> StaticMediaQuery:
        return self._orientation

    def add_resize_listener(self, listener: Callable[[int], None]) -> Callable[[], None]:
        token = object()
        self._listeners[token] = listener

        def remove() -> None:
            self._listeners.pop(token, None)

        return remove

    def resize(self, width: int) -> None:
        self._width = width
        for listener in list(self._listeners.values()):
            listener(width)

    def rotate(self, landscape: bool) -> None:
        self._orientation.emit(landscape)
