"""
@PURPOSE: 元素定位器 - 按固定策略链定位并安全操作不稳定的表单控件
@OUTLINE:
  - PROBE_JS: 单次 evaluate 获取可见性/链接/作用域/文案
  - @dataclass LocatedElement: 通过全部校验的元素
  - @dataclass NotFound: 所有策略失败, 携带尝试过的策略名
  - class ElementLocator: 定位器
    - async def locate(): 定位(可选择立即提交操作)
    - async def click(): 定位并点击
    - async def fill(): 定位并填写
    - async def type_text(): 定位并逐字输入(随机按键间隔)
    - async def set_files(): 定位文件控件并注入文件
    - def require(): NotFound 转换为 FieldResolutionError
@GOTCHAS:
  - 任何目标都绝不选中 <a> 或 <a> 的后代, 即使文案完全匹配
  - 多个候选通过校验时优先作用域内的元素
  - 每个策略最多尝试 attempts 次, 之间有短暂间隔; 第一个通过校验的元素提交后立即返回
  - 提交操作本身抛出 Playwright 异常时视为本次尝试失败, 继续后续候选/策略
  - 逐字输入的超时按文本长度与按键间隔放宽; 超过 typing_max_chars 的文本直接 fill
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: strategies, targets, utils.page_waiter, errors, config.settings
@RELATED: taxonomy_navigator.py, photo_ingestor.py, workflows/publish_workflow.py
"""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger
from playwright.async_api import Error as PlaywrightError

from ..config.settings import settings
from ..errors import FieldResolutionError
from ..utils.page_waiter import PageWaiter, WaitStrategy
from .strategies import ResolutionStrategy, build_field_strategies, build_option_strategies
from .targets import FieldRole, OptionTarget, get_field_spec

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

PROBE_JS = """
(el, scope) => {
  const style = window.getComputedStyle(el);
  const rect = el.getBoundingClientRect();
  const visible = el.offsetParent !== null
    && rect.width > 0 && rect.height > 0
    && style.display !== 'none'
    && style.visibility !== 'hidden';
  const isLink = el.tagName === 'A';
  const parent = el.parentElement;
  const hasLinkAncestor = parent !== null && parent.closest('a') !== null;
  let inScope = false;
  if (scope) {
    try { inScope = el.closest(scope) !== null; } catch (e) { inScope = false; }
  }
  return {
    visible,
    isLink,
    hasLinkAncestor,
    inScope,
    text: (el.textContent || '').trim(),
    tag: el.tagName,
  };
}
"""

Target = FieldRole | OptionTarget | str
Action = Callable[["Locator"], Awaitable[Any]]


@dataclass(slots=True)
class LocatedElement:
    """通过可见性/链接安全校验的元素."""

    locator: Locator
    strategy: str
    text: str = ""
    tag: str = ""
    in_scope: bool = False
    is_link: bool = False
    has_link_ancestor: bool = False
    attempted_strategies: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return True


@dataclass(slots=True)
class NotFound:
    """所有策略都未找到可用元素."""

    target: str
    attempted_strategies: list[str] = field(default_factory=list)
    reason: str = "所有策略均未找到可用元素"

    @property
    def found(self) -> bool:
        return False


LocateResult = LocatedElement | NotFound


def _normalize_target(target: Target) -> FieldRole | OptionTarget:
    if isinstance(target, (FieldRole, OptionTarget)):
        return target
    try:
        return FieldRole(target)
    except ValueError:
        return OptionTarget(label=target)


def describe_target(target: Target) -> str:
    normalized = _normalize_target(target)
    if isinstance(normalized, OptionTarget):
        return normalized.describe()
    return get_field_spec(normalized).description


class ElementLocator:
    """弹性元素定位器.

    Examples:
        >>> locator = ElementLocator()
        >>> result = await locator.click(page, OptionTarget("Damen", level=0))
        >>> if not result.found:
        ...     print(result.attempted_strategies)
    """

    def __init__(
        self,
        *,
        attempts: int | None = None,
        retry_delay_ms: int | None = None,
        action_timeout_ms: int | None = None,
        typing_delay_ms: tuple[int, int] | None = None,
        typing_max_chars: int | None = None,
    ) -> None:
        timing = settings.timing
        attempts = timing.locator_attempts if attempts is None else attempts
        retry_delay_ms = timing.locator_retry_delay_ms if retry_delay_ms is None else retry_delay_ms
        self.attempts = max(1, attempts)
        self.wait_strategy = WaitStrategy(retry_delay_ms=retry_delay_ms)
        self.action_timeout_ms = (
            timing.action_timeout_ms if action_timeout_ms is None else action_timeout_ms
        )
        self.typing_delay_ms = typing_delay_ms or (
            timing.typing_delay_min_ms,
            timing.typing_delay_max_ms,
        )
        self.typing_max_chars = (
            timing.typing_max_chars if typing_max_chars is None else typing_max_chars
        )

    def keystroke_delay(self) -> int:
        """在配置区间内随机取一个按键间隔(毫秒)."""
        low, high = self.typing_delay_ms
        return random.randint(low, max(low, high))

    def strategies_for(self, target: Target) -> tuple[list[ResolutionStrategy], bool, str | None]:
        """返回 (策略链, 是否要求可见, 作用域)."""
        normalized = _normalize_target(target)
        if isinstance(normalized, OptionTarget):
            return build_option_strategies(normalized), True, normalized.effective_scope
        spec = get_field_spec(normalized)
        return build_field_strategies(spec), spec.require_visible, spec.scope

    @staticmethod
    async def probe(candidate: Locator, scope: str | None) -> dict[str, Any]:
        return await candidate.evaluate(PROBE_JS, scope)

    async def _pick(
        self,
        candidates: Sequence[Locator],
        strategy: ResolutionStrategy,
        require_visible: bool,
        scope: str | None,
    ) -> list[tuple[Locator, dict[str, Any]]]:
        """对候选逐个做安全校验, 返回通过的候选(作用域内优先)."""
        accepted: list[tuple[Locator, dict[str, Any]]] = []
        for candidate in candidates:
            try:
                info = await self.probe(candidate, scope)
            except PlaywrightError as exc:
                logger.debug("候选元素探测失败 ({}): {}", strategy.name, exc)
                continue

            if info.get("isLink") or info.get("hasLinkAncestor"):
                logger.debug("跳过链接元素 ({}): '{}'", strategy.name, info.get("text", "")[:40])
                continue
            if require_visible and not info.get("visible"):
                continue
            if not strategy.accepts_text(info.get("text")):
                continue
            accepted.append((candidate, info))

        accepted.sort(key=lambda item: not item[1].get("inScope"))
        return accepted

    async def locate(
        self,
        page: Page,
        target: Target,
        *,
        scope: str | None = None,
        action: Action | None = None,
        quiet: bool = False,
    ) -> LocateResult:
        """按策略链定位目标.

        Args:
            page: Playwright 页面
            target: 语义字段、选项目标或精确文案
            scope: 覆盖默认作用域
            action: 找到后立即执行的提交操作(点击/填写/注入文件)

        Returns:
            LocatedElement 或 NotFound
        """
        strategies, require_visible, default_scope = self.strategies_for(target)
        return await self.run_chain(
            page,
            strategies,
            label=describe_target(target),
            require_visible=require_visible,
            scope=scope or default_scope,
            action=action,
            quiet=quiet,
        )

    async def run_chain(
        self,
        page: Page,
        strategies: Sequence[ResolutionStrategy],
        *,
        label: str,
        require_visible: bool = True,
        scope: str | None = None,
        action: Action | None = None,
        quiet: bool = False,
    ) -> LocateResult:
        """按给定策略链定位; quiet=True 时失败只记 debug 日志(可选元素探测)."""
        waiter = PageWaiter(page, self.wait_strategy)
        attempted: list[str] = []

        for strategy in strategies:
            attempted.append(strategy.name)
            for attempt in range(1, self.attempts + 1):
                try:
                    candidates = await strategy.candidates(page)
                except PlaywrightError as exc:
                    logger.debug("策略执行失败 {} (第 {} 次): {}", strategy.name, attempt, exc)
                    candidates = []

                for candidate, info in await self._pick(
                    candidates, strategy, require_visible, scope
                ):
                    if action is not None:
                        try:
                            await action(candidate)
                        except PlaywrightError as exc:
                            logger.debug("操作失败 {} ({}): {}", label, strategy.name, exc)
                            continue
                    logger.debug("定位成功 {} <- {} (第 {} 次)", label, strategy.name, attempt)
                    return LocatedElement(
                        locator=candidate,
                        strategy=strategy.name,
                        text=info.get("text", ""),
                        tag=info.get("tag", ""),
                        in_scope=bool(info.get("inScope")),
                        is_link=bool(info.get("isLink")),
                        has_link_ancestor=bool(info.get("hasLinkAncestor")),
                        attempted_strategies=list(attempted),
                    )

                if attempt < self.attempts:
                    await waiter.retry_pause()

        log = logger.debug if quiet else logger.warning
        log("{} 定位失败, 已尝试 {} 个策略", label, len(attempted))
        return NotFound(target=label, attempted_strategies=attempted)

    async def click(
        self, page: Page, target: Target, *, scope: str | None = None, quiet: bool = False
    ) -> LocateResult:
        async def _click(candidate: Locator) -> None:
            await candidate.click(timeout=self.action_timeout_ms)

        return await self.locate(page, target, scope=scope, action=_click, quiet=quiet)

    async def fill(
        self,
        page: Page,
        target: Target,
        value: str,
        *,
        scope: str | None = None,
        quiet: bool = False,
    ) -> LocateResult:
        async def _fill(candidate: Locator) -> None:
            await candidate.fill(value, timeout=self.action_timeout_ms)

        return await self.locate(page, target, scope=scope, action=_fill, quiet=quiet)

    async def type_text(
        self,
        page: Page,
        target: Target,
        value: str,
        *,
        scope: str | None = None,
        quiet: bool = False,
    ) -> LocateResult:
        """逐字输入: 先清空, 再以随机按键间隔输入. 过长的文本退回 fill."""
        if len(value) > self.typing_max_chars:
            return await self.fill(page, target, value, scope=scope, quiet=quiet)
        return await self.locate(
            page, target, scope=scope, action=self.typing_action(value), quiet=quiet
        )

    def typing_action(self, value: str) -> Action:
        """生成逐字输入的提交操作(也供自定义策略链使用)."""
        delay = self.keystroke_delay()
        timeout = self.action_timeout_ms + delay * len(value)

        async def _type(candidate: Locator) -> None:
            await candidate.clear(timeout=self.action_timeout_ms)
            await candidate.press_sequentially(value, delay=delay, timeout=timeout)

        return _type

    async def set_files(
        self, page: Page, target: Target, files: str | Sequence[str], *, scope: str | None = None
    ) -> LocateResult:
        async def _set(candidate: Locator) -> None:
            await candidate.set_input_files(files, timeout=self.action_timeout_ms)

        return await self.locate(page, target, scope=scope, action=_set)

    @staticmethod
    def require(result: LocateResult, field_name: str) -> LocatedElement:
        """必填字段: NotFound 直接转换为 FieldResolutionError."""
        if isinstance(result, NotFound):
            raise FieldResolutionError(
                f"{result.target} 定位失败",
                segment=field_name,
                attempted_strategies=result.attempted_strategies,
            )
        return result
