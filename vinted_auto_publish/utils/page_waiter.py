"""
@PURPOSE: 提供统一的有界等待原语(条件、可见性、网络信号、URL 变化), 替代硬编码的固定等待
@OUTLINE:
  - @dataclass WaitStrategy: 存放等待策略
  - class PageWaiter: 封装可复用的等待工具
    - async def wait_for_condition(): 通用条件等待
    - async def wait_for_visible(): 等待元素可见
    - async def start_response_signal(): 后台等待指定网络响应(下游信号)
    - async def wait_for_url_pattern(): 等待 URL 匹配正则
    - async def retry_pause(): 策略重试间隔
@GOTCHAS:
  - 所有等待都有上限; 超时返回 False 而不是抛异常, wait_for_url_pattern 除外
  - 下游信号必须在触发动作之前开始监听, 否则可能错过响应
  - 固定 sleep 只作为重试间隔使用, 不作为主要同步手段
@DEPENDENCIES:
  - 外部: playwright, loguru
@RELATED: browser/element_locator.py, browser/taxonomy_navigator.py
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from loguru import logger
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


@dataclass(slots=True)
class WaitStrategy:
    """等待策略配置."""

    condition_timeout_ms: int = 3000
    poll_interval_ms: int = 100
    visibility_timeout_ms: int = 1500
    retry_delay_ms: int = 400

    @classmethod
    def from_settings(cls) -> WaitStrategy:
        """从全局配置构造."""
        from ..config.settings import settings

        timing = settings.timing
        return cls(
            condition_timeout_ms=timing.field_confirm_timeout_ms,
            retry_delay_ms=timing.locator_retry_delay_ms,
        )

    @classmethod
    def immediate(cls) -> WaitStrategy:
        """不等待, 用于测试与离线场景."""
        return cls(
            condition_timeout_ms=50,
            poll_interval_ms=1,
            visibility_timeout_ms=0,
            retry_delay_ms=0,
        )


class PageWaiter:
    """可复用的页面等待工具."""

    def __init__(self, page: Page, strategy: WaitStrategy | None = None):
        self.page = page
        self.strategy = strategy or WaitStrategy()

    async def wait_for_condition(
        self,
        condition: Callable[[Page], Awaitable[bool]],
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> bool:
        """等待自定义条件成立.

        Returns:
            True 表示条件成立, False 表示超时
        """
        timeout = self.strategy.condition_timeout_ms if timeout_ms is None else timeout_ms
        poll_interval = interval_ms or self.strategy.poll_interval_ms
        deadline = time.monotonic() + timeout / 1000

        while True:
            try:
                if await condition(self.page):
                    return True
            except Exception as exc:
                logger.debug("条件检查失败: {}", exc)

            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(poll_interval / 1000)

    async def wait_for_visible(self, locator: Locator, timeout_ms: int | None = None) -> bool:
        timeout = self.strategy.visibility_timeout_ms if timeout_ms is None else timeout_ms
        if timeout <= 0:
            return True
        try:
            await locator.wait_for(state="visible", timeout=timeout)
            return True
        except PlaywrightTimeoutError:
            return False

    async def _await_response(self, url_fragment: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_event(
                "response",
                predicate=lambda response: url_fragment in response.url,
                timeout=timeout_ms,
            )
            return True
        except PlaywrightTimeoutError:
            return False

    async def start_response_signal(self, url_fragment: str, timeout_ms: int) -> asyncio.Task[bool]:
        """在触发动作之前开始监听下游响应.

        让出一次事件循环, 保证返回时监听已经注册.

        Returns:
            task, 结果为 True(收到响应) 或 False(超时)
        """
        logger.debug("开始监听下游信号: {} (超时 {}ms)", url_fragment, timeout_ms)
        task = asyncio.ensure_future(self._await_response(url_fragment, timeout_ms))
        await asyncio.sleep(0)
        return task

    async def wait_for_url_pattern(self, patterns: Sequence[str], timeout_ms: int) -> str:
        """等待 URL 匹配任一正则, 返回匹配时的 URL.

        Raises:
            PlaywrightTimeoutError: 超时
        """
        combined = re.compile("|".join(f"(?:{pattern})" for pattern in patterns))
        await self.page.wait_for_url(combined, timeout=timeout_ms, wait_until="commit")
        return self.page.url

    async def retry_pause(self, delay_ms: int | None = None) -> None:
        delay = self.strategy.retry_delay_ms if delay_ms is None else delay_ms
        if delay > 0:
            await asyncio.sleep(delay / 1000)
