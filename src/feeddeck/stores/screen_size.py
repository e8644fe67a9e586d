"""屏幕尺寸/断点 Store."""

from collections.abc import Callable
from typing import Literal

from feeddeck.core.media import Viewport
from feeddeck.core.store import Derived, Readable

# 与 Tailwind 默认断点一致
BREAKPOINTS: dict[str, int] = {
    "sm": 640,
    "md": 768,
    "lg": 1024,
    "xl": 1280,
    "2xl": 1536,
}

# 没有视口信息时按手机宽度渲染，避免先闪现桌面布局
DEFAULT_WIDTH = 375

Breakpoint = Literal["xs", "sm", "md", "lg", "xl", "2xl"]


def breakpoint_for(width: int) -> Breakpoint:
    if width >= BREAKPOINTS["2xl"]:
        return "2xl"
    if width >= BREAKPOINTS["xl"]:
        return "xl"
    if width >= BREAKPOINTS["lg"]:
        return "lg"
    if width >= BREAKPOINTS["md"]:
        return "md"
    if width >= BREAKPOINTS["sm"]:
        return "sm"
    return "xs"


def desktop_layout(width: int, landscape: bool) -> bool:
    """桌面宽度总是桌面布局；平板宽度横屏时用桌面布局，竖屏时用手机布局."""
    if width >= BREAKPOINTS["lg"]:
        return True
    return width >= BREAKPOINTS["md"] and landscape


class ScreenSizeStore:
    """视口宽度与横竖屏派生出的布局开关.

    只有在有订阅者时才监听视口。
    """

    def __init__(self, viewport: Viewport | None = None) -> None:
        self.viewport = viewport
        self.screen_width: Readable[int] = Readable(DEFAULT_WIDTH, self._watch_width)
        self.is_landscape: Readable[bool] = Readable(False, self._watch_orientation)

        self.breakpoint: Derived[Breakpoint] = Derived([self.screen_width], breakpoint_for)
        self.is_mobile: Derived[bool] = Derived(
            [self.screen_width], lambda w: w < BREAKPOINTS["md"]
        )
        self.is_tablet: Derived[bool] = Derived(
            [self.screen_width],
            lambda w: BREAKPOINTS["md"] <= w < BREAKPOINTS["lg"],
        )
        self.is_desktop: Derived[bool] = Derived(
            [self.screen_width], lambda w: w >= BREAKPOINTS["lg"]
        )
        self.use_desktop_layout: Derived[bool] = Derived(
            [self.screen_width, self.is_landscape], desktop_layout
        )

    def _watch_width(self, set_value: Callable[[int], None]) -> Callable[[], None] | None:
        if self.viewport is None:
            return None
        set_value(self.viewport.width)
        return self.viewport.add_resize_listener(set_value)

    def _watch_orientation(
        self, set_value: Callable[[bool], None]
    ) -> Callable[[], None] | None:
        if self.viewport is None:
            return None
        orientation = self.viewport.orientation
        set_value(orientation.matches)
        return orientation.add_listener(set_value)
