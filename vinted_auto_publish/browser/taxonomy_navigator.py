"""
@PURPOSE: 类目导航状态机 - 在发布页内逐级点击类目路径, 以品牌接口响应作为完成信号
@OUTLINE:
  - class NavigationState: 状态枚举
  - @dataclass NavigationContext: 当前层级/页面标识/状态
  - @dataclass NavigationReport: 导航结果(成功或失败层级与原因)
  - class TaxonomyNavigator: 类目导航器
    - async def navigate(): 执行整条路径
    - def raise_for_report(): 失败报告转换为对应异常
@GOTCHAS:
  - 入口页面标识不符时直接 Aborted(WrongPage), 不调用定位器
  - 每次点击后重新校验 URL, 发生跳转视为完整性破坏并立即中止
  - 品牌接口信号在最后一级点击之前开始监听; 超时不致命, 退回到 DOM 中品牌字段是否出现
  - 信号与品牌字段都缺失时中止(DownstreamSignalMissing), 不在无法确认的状态上继续
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: element_locator, targets, utils.page_waiter, models.taxonomy, errors
@RELATED: workflows/publish_workflow.py, taxonomy/resolver.py
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from loguru import logger

from ..config.settings import MarketplaceConfig, settings
from ..errors import (
    FieldResolutionError,
    NavigationIntegrityError,
    PublishError,
    WrongPageError,
)
from ..models.taxonomy import TaxonomyNode
from ..utils.page_waiter import PageWaiter, WaitStrategy
from .element_locator import ElementLocator, NotFound
from .targets import FIELD_SPECS, FieldRole, OptionTarget

if TYPE_CHECKING:
    from playwright.async_api import Page


class NavigationState(StrEnum):
    AWAITING_PAGE_READY = "AwaitingPageReady"
    SELECTING_LEVEL = "SelectingLevel"
    VERIFYING_INTEGRITY = "VerifyingIntegrity"
    AWAITING_DOWNSTREAM_SIGNAL = "AwaitingDownstreamSignal"
    DONE = "Done"
    ABORTED = "Aborted"


class AbortReason(StrEnum):
    WRONG_PAGE = "WrongPage"
    OPTION_NOT_FOUND = "OptionNotFound"
    INTEGRITY_VIOLATION = "IntegrityViolation"
    SIGNAL_MISSING = "DownstreamSignalMissing"


@dataclass(slots=True)
class NavigationContext:
    """导航上下文, 导航开始时创建, 完成或首次中止后丢弃."""

    page_identity_token: str
    current_level: int = 0
    state: NavigationState = NavigationState.AWAITING_PAGE_READY
    history: list[NavigationState] = field(default_factory=list)

    def transition(self, state: NavigationState) -> None:
        self.history.append(self.state)
        self.state = state
        logger.bind(level=self.current_level).debug("类目导航状态 -> {}", state)


@dataclass(slots=True)
class NavigationReport:
    """导航结果.

    Attributes:
        success: 是否完成
        path: 目标路径
        failing_level: 失败层级(从0开始)
        failing_segment: 失败的路径段
        reason: 中止原因
        detail: 诊断信息
        signal_received: 是否收到品牌接口信号
        confirmed_by_dom: 信号缺失时是否由 DOM 二次确认
        attempted_strategies: 失败层级尝试过的策略
        final_url: 结束时的 URL
    """

    success: bool
    path: str
    failing_level: int | None = None
    failing_segment: str | None = None
    reason: AbortReason | None = None
    detail: str = ""
    signal_received: bool = False
    confirmed_by_dom: bool = False
    attempted_strategies: list[str] = field(default_factory=list)
    final_url: str = ""
    states: list[NavigationState] = field(default_factory=list)


class TaxonomyNavigator:
    """类目导航器.

    Examples:
        >>> navigator = TaxonomyNavigator(ElementLocator())
        >>> report = await navigator.navigate(page, node)
        >>> navigator.raise_for_report(report)
    """

    def __init__(
        self,
        locator: ElementLocator,
        *,
        marketplace: MarketplaceConfig | None = None,
        signal_timeout_ms: int | None = None,
        confirm_timeout_ms: int | None = None,
        wait_strategy: WaitStrategy | None = None,
    ) -> None:
        self.locator = locator
        self.marketplace = marketplace or settings.marketplace
        self.signal_timeout_ms = (
            settings.timing.brand_signal_timeout_ms
            if signal_timeout_ms is None
            else signal_timeout_ms
        )
        self.confirm_timeout_ms = (
            settings.timing.field_confirm_timeout_ms
            if confirm_timeout_ms is None
            else confirm_timeout_ms
        )
        self.wait_strategy = wait_strategy or WaitStrategy()

    def _on_expected_page(self, page: Page) -> bool:
        return self.marketplace.is_new_item_url(page.url)

    async def _open_picker(self, page: Page) -> None:
        result = await self.locator.click(page, FieldRole.CATEGORY, quiet=True)
        if result.found:
            logger.debug("类目选择器已打开 ({})", result.strategy)
        else:
            logger.info("未找到类目触发控件, 假定类目列表已直接展示")

    async def _brand_field_present(self, page: Page) -> bool:
        selectors = FIELD_SPECS[FieldRole.BRAND].selectors

        async def _present(current: Page) -> bool:
            for selector in selectors:
                if await current.locator(selector).count() > 0:
                    return True
            return False

        waiter = PageWaiter(page, self.wait_strategy)
        return await waiter.wait_for_condition(_present, timeout_ms=self.confirm_timeout_ms)

    def _abort(
        self,
        context: NavigationContext,
        node: TaxonomyNode,
        reason: AbortReason,
        detail: str,
        page: Page,
        attempted: list[str] | None = None,
    ) -> NavigationReport:
        context.transition(NavigationState.ABORTED)
        wrong_page = reason == AbortReason.WRONG_PAGE
        segment = None if wrong_page else node.segments[context.current_level]
        logger.error("类目导航中止 [{}] 层级 {}: {}", reason, context.current_level, detail)
        return NavigationReport(
            success=False,
            path=node.full_path,
            failing_level=None if wrong_page else context.current_level,
            failing_segment=segment,
            reason=reason,
            detail=detail,
            attempted_strategies=list(attempted or []),
            final_url=page.url,
            states=[*context.history, context.state],
        )

    async def navigate(self, page: Page, node: TaxonomyNode) -> NavigationReport:
        """逐级选择类目路径.

        Args:
            page: 已位于发布页的页面
            node: 目标类目节点

        Returns:
            导航结果; 失败时携带层级与路径段
        """
        token = self.marketplace.new_item_path
        context = NavigationContext(page_identity_token=token)
        logger.info("选择类目: {}", node.full_path)

        if not self._on_expected_page(page):
            return self._abort(
                context,
                node,
                AbortReason.WRONG_PAGE,
                f"当前页面不是发布页: {page.url}",
                page,
            )

        await self._open_picker(page)
        waiter = PageWaiter(page, self.wait_strategy)
        signal: asyncio.Task[bool] | None = None
        last_level = node.depth - 1

        try:
            for level, segment in enumerate(node.segments):
                context.current_level = level
                context.transition(NavigationState.SELECTING_LEVEL)

                if level == last_level:
                    signal = await waiter.start_response_signal(
                        self.marketplace.brand_signal_fragment, self.signal_timeout_ms
                    )

                result = await self.locator.click(page, OptionTarget(label=segment, level=level))
                if isinstance(result, NotFound):
                    return self._abort(
                        context,
                        node,
                        AbortReason.OPTION_NOT_FOUND,
                        f"未找到类目选项 '{segment}'",
                        page,
                        result.attempted_strategies,
                    )

                context.transition(NavigationState.VERIFYING_INTEGRITY)
                if not self._on_expected_page(page):
                    return self._abort(
                        context,
                        node,
                        AbortReason.INTEGRITY_VIOLATION,
                        f"点击 '{segment}' 后页面跳转到 {page.url}",
                        page,
                    )
                logger.debug("类目第 {} 级已选择: {}", level + 1, segment)

            context.transition(NavigationState.AWAITING_DOWNSTREAM_SIGNAL)
            signal_received = bool(await signal) if signal is not None else False
            signal = None
        finally:
            if signal is not None and not signal.done():
                signal.cancel()

        confirmed_by_dom = False
        if signal_received:
            logger.info("已收到品牌接口信号, 类目选择生效")
        else:
            logger.warning("品牌接口信号超时, 检查品牌字段是否出现")
            confirmed_by_dom = await self._brand_field_present(page)
            if not confirmed_by_dom:
                return self._abort(
                    context,
                    node,
                    AbortReason.SIGNAL_MISSING,
                    "品牌接口信号与品牌字段均未出现, 无法确认类目已生效",
                    page,
                )
            logger.info("品牌字段已出现, 类目选择视为生效")

        context.transition(NavigationState.DONE)
        return NavigationReport(
            success=True,
            path=node.full_path,
            signal_received=signal_received,
            confirmed_by_dom=confirmed_by_dom,
            final_url=page.url,
            states=[*context.history, context.state],
        )

    @staticmethod
    def raise_for_report(report: NavigationReport) -> None:
        """失败报告 -> 对应异常; 成功时什么也不做."""
        if report.success:
            return
        kwargs = {
            "level": report.failing_level,
            "segment": report.failing_segment,
            "attempted_strategies": report.attempted_strategies,
        }
        error: PublishError
        if report.reason == AbortReason.WRONG_PAGE:
            error = WrongPageError(report.detail, **kwargs)
        elif report.reason == AbortReason.INTEGRITY_VIOLATION:
            error = NavigationIntegrityError(report.detail, **kwargs)
        elif report.reason == AbortReason.SIGNAL_MISSING:
            error = FieldResolutionError(report.detail, code="CategoryNotConfirmed", **kwargs)
        else:
            error = FieldResolutionError(report.detail, code="CategoryOptionNotFound", **kwargs)
        raise error
