"""
@PURPOSE: Vinted 发布工作流 - 校验 -> 会话 -> 文本字段 -> 类目 -> 可选字段 -> 图片 -> 提交
@OUTLINE:
  - @dataclass AttemptState: 单次尝试过程中累积的诊断信息
  - class PublishWorkflow: 发布工作流
    - def validate(): 本地前置校验(不打开浏览器)
    - async def publish(): 对外入口, 始终返回 PublishOutcome
    - async def _run(): 浏览器会话内的完整流程
    - async def _fill_text_fields(): 标题/描述/价格
    - async def _select_category(): 类目解析 + 逐级导航
    - async def _fill_optional_fields(): 品牌/尺码/成色/颜色
    - async def _upload_photos(): 图片上传
    - async def _submit(): 校验提交按钮, 点击并等待跳转
  - def extract_listing_id(): 从结果 URL 提取商品ID
@GOTCHAS:
  - 字段顺序固定: 文本 -> 类目 -> 可选字段 -> 图片; 品牌等字段依赖类目先生效
  - 前置校验失败时不创建浏览器会话
  - 标题与描述逐字输入, 价格直接填写
  - 可选字段失败只记警告; 必填字段/类目/页面标识失败立即中止
  - 提交按钮不可用视为缺少必要数据(通常是图片), 报告 SubmissionRejected
  - 任何退出路径都会经由 BrowserSession 的 async with 关闭浏览器
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: browser.*, taxonomy.*, models.*, errors, utils.*
@RELATED: cli/commands/publish.py
"""

from __future__ import annotations

import asyncio
import re
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..browser.browser_session import BrowserFactory, BrowserSession, default_browser_factory
from ..browser.element_locator import ElementLocator
from ..browser.photo_ingestor import PhotoIngestor
from ..browser.session_controller import SessionController
from ..browser.targets import FieldRole, OptionTarget
from ..browser.taxonomy_navigator import TaxonomyNavigator
from ..config.settings import MarketplaceConfig, PublishConfig, settings
from ..errors import (
    PhotoIngestionError,
    PublishError,
    PublishTimeoutError,
    SubmissionRejectedError,
    WrongPageError,
)
from ..models.listing import Listing, MarketplaceSession
from ..models.result import PhotoIngestionResult, PublishOutcome, PublishStatus
from ..taxonomy.mappings import map_color, map_condition
from ..taxonomy.resolver import CategoryResolver
from ..utils.logger_setup import get_logger_with_context, log_section
from ..utils.page_waiter import PageWaiter

if TYPE_CHECKING:
    from playwright.async_api import Page

LISTING_ID_PATTERN = re.compile(r"/items/(\d+)")


def extract_listing_id(url: str) -> str:
    """详情页 URL 中的数字ID; 跳转到目录页等情况生成 catalog-<时间戳> 占位."""
    match = LISTING_ID_PATTERN.search(url)
    if match:
        return match.group(1)
    return f"catalog-{int(time.time())}"


@dataclass(slots=True)
class AttemptState:
    """单次发布尝试中逐步累积的信息, 失败时用于组装诊断."""

    attempt_id: str
    resolved_category: str | None = None
    warnings: list[str] = field(default_factory=list)
    photos: PhotoIngestionResult | None = None
    final_url: str | None = None
    snapshot: str | None = None

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


@contextmanager
def _stage(name: str) -> Iterator[None]:
    with logger.contextualize(stage=name):
        yield


class PublishWorkflow:
    """Vinted 发布工作流.

    每次 publish() 调用独占一个浏览器会话, 多个实例可以并发运行.

    Examples:
        >>> workflow = PublishWorkflow()
        >>> outcome = await workflow.publish(listing, session)
        >>> outcome.status
        <PublishStatus.SUCCESS: 'Success'>
    """

    def __init__(
        self,
        *,
        browser_factory: BrowserFactory = default_browser_factory,
        resolver: CategoryResolver | None = None,
        locator: ElementLocator | None = None,
        navigator: TaxonomyNavigator | None = None,
        photo_ingestor: PhotoIngestor | None = None,
        publish_config: PublishConfig | None = None,
        marketplace: MarketplaceConfig | None = None,
        submit_timeout_ms: int | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.browser_factory = browser_factory
        self.config = publish_config or settings.publish
        self.marketplace = marketplace or settings.marketplace
        self.resolver = resolver or CategoryResolver(default_branch=self.config.default_branch)
        self.locator = locator or ElementLocator()
        self.navigator = navigator or TaxonomyNavigator(self.locator, marketplace=self.marketplace)
        self.photo_ingestor = photo_ingestor or PhotoIngestor(self.locator)
        self.submit_timeout_ms = (
            settings.timing.submit_timeout_ms if submit_timeout_ms is None else submit_timeout_ms
        )
        self.timeout_s = settings.timing.publish_timeout_s if timeout_s is None else timeout_s

    # ========== 前置校验 ==========

    def validate(self, listing: Listing) -> SubmissionRejectedError | None:
        """标题与描述长度校验, 不合格返回对应异常(不抛出)."""
        title = listing.title.strip()
        description = listing.description.strip()
        if len(title) < self.config.min_title_length:
            return SubmissionRejectedError(
                f"标题过短: {len(title)} < {self.config.min_title_length}",
                code="TitleTooShort",
                segment="title",
            )
        if len(description) < self.config.min_description_length:
            return SubmissionRejectedError(
                f"描述过短: {len(description)} < {self.config.min_description_length}",
                code="DescriptionTooShort",
                segment="description",
            )
        return None

    # ========== 入口 ==========

    async def publish(self, listing: Listing, session: MarketplaceSession) -> PublishOutcome:
        """执行一次发布尝试.

        Args:
            listing: 商品数据
            session: 已登录会话(Cookie + 身份字符串)

        Returns:
            结构化结果; 不向调用方抛出异常(取消除外)
        """
        state = AttemptState(attempt_id=uuid.uuid4().hex[:8])
        started = time.perf_counter()

        with logger.contextualize(attempt_id=state.attempt_id):
            log_section(f"发布商品: {listing.title[:40]}")

            rejection = self.validate(listing)
            if rejection is not None:
                logger.warning("前置校验失败, 不启动浏览器: {}", rejection.message)
                outcome = self._failure(state, rejection)
            else:
                try:
                    async with asyncio.timeout(self.timeout_s):
                        outcome = await self._run(listing, session, state)
                except TimeoutError:
                    outcome = self._failure(
                        state,
                        PublishTimeoutError(f"发布总耗时超过 {self.timeout_s}s", code="PublishTimeout"),
                    )
                except Exception as exc:
                    outcome = self._failure(state, self._as_publish_error(exc))

            outcome.elapsed = round(time.perf_counter() - started, 3)
            get_logger_with_context(status=str(outcome.status)).info(
                "发布结束: {} (耗时 {:.1f}s)", outcome.status, outcome.elapsed
            )
            return outcome

    async def _run(
        self, listing: Listing, session: MarketplaceSession, state: AttemptState
    ) -> PublishOutcome:
        async with self.browser_factory(session) as browser:
            page = browser.page
            try:
                with _stage("session"):
                    await SessionController(
                        browser, locator=self.locator, marketplace=self.marketplace
                    ).open_authenticated(session)
                    await self._open_listing_form(page)

                with _stage("text"):
                    await self._fill_text_fields(page, listing)
                with _stage("category"):
                    await self._select_category(page, listing, state)
                with _stage("optional"):
                    await self._fill_optional_fields(page, listing, state)
                with _stage("photos"):
                    await self._upload_photos(page, listing, state)
                with _stage("submit"):
                    final_url = await self._submit(page)
            except Exception as exc:
                error = self._as_publish_error(exc)
                state.final_url = page.url
                state.snapshot = await self._capture(browser)
                return self._failure(state, error)

        listing_id = extract_listing_id(final_url)
        logger.success("发布成功: {} (ID {})", final_url, listing_id)
        return PublishOutcome(
            status=PublishStatus.SUCCESS,
            attempt_id=state.attempt_id,
            final_url=final_url,
            listing_id=listing_id,
            resolved_category=state.resolved_category,
            warnings=state.warnings,
            photos=state.photos,
        )

    # ========== 步骤 ==========

    async def _open_listing_form(self, page: Page) -> None:
        url = self.marketplace.new_item_url
        logger.info("打开发布页: {}", url)
        await page.goto(url, wait_until="domcontentloaded")
        if not self.marketplace.is_new_item_url(page.url):
            raise WrongPageError(f"未进入发布页(可能未登录): {page.url}")

    async def _fill_text_fields(self, page: Page, listing: Listing) -> None:
        for role, value, typed in (
            (FieldRole.TITLE, listing.title, True),
            (FieldRole.DESCRIPTION, listing.description, True),
            (FieldRole.PRICE, listing.price_text, False),
        ):
            commit = self.locator.type_text if typed else self.locator.fill
            result = await commit(page, role, value)
            self.locator.require(result, str(role))
            logger.info("已填写 {}", role)

    async def _select_category(self, page: Page, listing: Listing, state: AttemptState) -> None:
        best = self.resolver.best(listing.category, listing.gender_hint)
        state.resolved_category = best.path
        logger.info("类目解析: '{}' -> {} (分数 {})", listing.category, best.path, best.score)

        report = await self.navigator.navigate(page, best.node)
        self.navigator.raise_for_report(report)

    async def _select_brand(self, page: Page, brand: str, state: AttemptState) -> None:
        typed = await self.locator.fill(page, FieldRole.BRAND, brand, quiet=True)
        if typed.found:
            picked = await self.locator.click(page, OptionTarget(label=brand), quiet=True)
            if not picked.found:
                logger.info("品牌列表中没有 '{}', 保留输入值", brand)
            return
        await self._select_option(page, FieldRole.BRAND, brand, state)

    async def _select_option(
        self, page: Page, role: FieldRole, value: str, state: AttemptState
    ) -> bool:
        opened = await self.locator.click(page, role, quiet=True)
        if not opened.found:
            state.warn(f"未找到 {role} 字段, 跳过 '{value}'")
            return False
        picked = await self.locator.click(page, OptionTarget(label=value), quiet=True)
        if not picked.found:
            state.warn(f"{role} 选项 '{value}' 不存在, 跳过")
            return False
        logger.info("已选择 {}: {}", role, value)
        return True

    async def _fill_optional_fields(self, page: Page, listing: Listing, state: AttemptState) -> None:
        if listing.brand:
            await self._select_brand(page, listing.brand, state)
        if listing.size:
            await self._select_option(page, FieldRole.SIZE, listing.size, state)
        if listing.condition:
            await self._select_option(
                page, FieldRole.CONDITION, map_condition(listing.condition), state
            )
        if listing.color:
            await self._select_option(page, FieldRole.COLOR, map_color(listing.color), state)

    async def _upload_photos(self, page: Page, listing: Listing, state: AttemptState) -> None:
        if not listing.image_urls:
            state.warn("没有图片, 提交按钮可能不可用")
            return

        result = await self.photo_ingestor.ingest(page, listing.image_urls)
        state.photos = result
        if result.is_empty_failure:
            reasons = "; ".join(f"#{f.index + 1} {f.stage}: {f.reason}" for f in result.failures)
            raise PhotoIngestionError(f"图片全部上传失败: {reasons}")
        if result.failures:
            state.warn(f"{len(result.failures)} 张图片上传失败")

    async def _submit(self, page: Page) -> str:
        located = self.locator.require(await self.locator.locate(page, FieldRole.SUBMIT), "submit")
        if not await located.locator.is_enabled():
            raise SubmissionRejectedError(
                "提交按钮不可用, 很可能缺少图片等必要信息",
                code="SubmitDisabled",
            )

        await located.locator.click(timeout=self.locator.action_timeout_ms)
        logger.info("已点击提交, 等待页面跳转...")
        waiter = PageWaiter(page)
        try:
            return await waiter.wait_for_url_pattern(
                self.marketplace.success_url_patterns, self.submit_timeout_ms
            )
        except PlaywrightTimeoutError as exc:
            raise PublishTimeoutError(
                f"提交后 {self.submit_timeout_ms}ms 内未跳转: {page.url}", code="SubmitTimeout"
            ) from exc

    # ========== 结果组装 ==========

    @staticmethod
    def _as_publish_error(exc: Exception) -> PublishError:
        if isinstance(exc, PublishError):
            return exc
        if isinstance(exc, (TimeoutError, PlaywrightTimeoutError)):
            return PublishTimeoutError(f"等待超时: {exc}")
        logger.opt(exception=exc).error("发布流程出现未预期异常: {}", exc)
        return SubmissionRejectedError(f"未预期异常: {exc}", code="UnexpectedError")

    async def _capture(self, browser: BrowserSession) -> str | None:
        if not self.config.snapshot_on_failure:
            return None
        return await browser.snapshot()

    @staticmethod
    def _failure(state: AttemptState, error: PublishError) -> PublishOutcome:
        logger.error("发布失败 [{}] {}", error.code, error.message)
        return PublishOutcome(
            status=error.status,
            attempt_id=state.attempt_id,
            final_url=state.final_url,
            failing_level=error.level,
            failing_segment=error.segment,
            error_code=error.code,
            diagnostic=error.message,
            attempted_strategies=error.attempted_strategies,
            resolved_category=state.resolved_category,
            warnings=state.warnings,
            photos=state.photos,
            snapshot=state.snapshot,
        )
