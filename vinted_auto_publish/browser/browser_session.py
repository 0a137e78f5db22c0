"""
@PURPOSE: 单次发布尝试独占的浏览器会话(驱动、浏览器、上下文、页面)
@OUTLINE:
  - STEALTH_INIT_SCRIPT: playwright-stealth 之外追加的反检测脚本(语言与插件)
  - def normalize_cookie(): 导出格式的 Cookie -> Playwright add_cookies 格式
  - class BrowserSession: 浏览器会话
    - async def start(): 启动浏览器并创建上下文/页面
    - async def apply_stealth(): 上下文级反检测补丁
    - async def apply_cookies(): 规范化并写入 Cookie
    - async def get_cookies(): 读取当前上下文 Cookie
    - async def snapshot(): 尽力而为的 base64 截图
    - async def close(): 按 页面 -> 上下文 -> 浏览器 -> 驱动 顺序关闭
  - BrowserFactory: 会话工厂类型(测试替身的接缝)
  - def default_browser_factory(): 默认工厂
@GOTCHAS:
  - 每次发布尝试创建并销毁自己的会话, 不在请求之间共享页面
  - 关闭过程中的错误只收集并记录, 不向上抛出
  - 身份字符串作为上下文 User-Agent, 必须在创建上下文时设置
@DEPENDENCIES:
  - 外部: playwright, playwright_stealth, loguru
  - 内部: config.settings, models.listing
@RELATED: session_controller.py, workflows/publish_workflow.py
"""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright_stealth.stealth import Stealth

from ..config.settings import BrowserConfig, MarketplaceConfig, settings
from ..models.listing import MarketplaceSession

BASE_LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
]

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'languages', { get: () => ['de-DE', 'de', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
"""

_SAME_SITE_VALUES = {"strict": "Strict", "lax": "Lax", "none": "None", "no_restriction": "None"}


def normalize_cookie(raw: Mapping[str, Any], default_url: str | None = None) -> dict[str, Any]:
    """将导出格式的 Cookie 转换为 Playwright add_cookies 接受的格式.

    - expiry -> expires, 缺失时为 -1(会话 Cookie)
    - path 缺失时为 "/"
    - sameSite 规范为 Strict/Lax/None, 默认 Lax
    - 没有 domain 时使用 default_url

    Examples:
        >>> normalize_cookie({"name": "a", "value": "1", "domain": ".vinted.de"})["sameSite"]
        'Lax'
    """
    expires = raw.get("expires", raw.get("expiry"))
    same_site_raw = str(raw.get("sameSite") or raw.get("same_site") or "lax").lower()
    cookie: dict[str, Any] = {
        "name": raw["name"],
        "value": str(raw.get("value", "")),
        "path": raw.get("path") or "/",
        "expires": float(expires) if expires not in (None, "") else -1,
        "httpOnly": bool(raw.get("httpOnly", raw.get("http_only", False))),
        "secure": bool(raw.get("secure", False)),
        "sameSite": _SAME_SITE_VALUES.get(same_site_raw, "Lax"),
    }
    domain = raw.get("domain")
    if domain:
        cookie["domain"] = domain
    elif default_url:
        cookie["url"] = default_url
        cookie.pop("path")
    return cookie


class BrowserSession:
    """单次发布尝试的浏览器会话.

    Examples:
        >>> async with BrowserSession(user_agent=session.identity_string) as browser:
        ...     await browser.page.goto("https://www.vinted.de")
    """

    def __init__(
        self,
        *,
        user_agent: str | None = None,
        browser_config: BrowserConfig | None = None,
        marketplace: MarketplaceConfig | None = None,
        headless: bool | None = None,
    ) -> None:
        self.config = browser_config or settings.browser
        self.marketplace = marketplace or settings.marketplace
        self.user_agent = user_agent or self.config.user_agent
        self.headless = self.config.headless if headless is None else headless

        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None

    @staticmethod
    def _merge_launch_args(base: list[str], extra: Iterable[str]) -> list[str]:
        merged = list(base)
        for arg in extra:
            if arg not in merged:
                merged.append(arg)
        return merged

    async def start(self) -> Page:
        """启动浏览器, 返回页面."""
        logger.info("启动 Playwright 浏览器 (headless={})", self.headless)
        self.playwright = await async_playwright().start()

        args = self._merge_launch_args(
            BASE_LAUNCH_ARGS,
            [f"--lang={self.config.locale}", *self.config.extra_args],
        )
        self.browser = await self.playwright.chromium.launch(
            headless=self.headless,
            slow_mo=self.config.slow_mo,
            args=args,
        )
        self.context = await self.browser.new_context(
            viewport=self.config.viewport,
            locale=self.config.locale,
            timezone_id=self.config.timezone_id,
            user_agent=self.user_agent,
        )
        await self.apply_stealth()

        self.page = await self.context.new_page()
        self.page.set_default_timeout(self.config.timeout)
        logger.success("浏览器已启动")
        return self.page

    async def apply_stealth(self) -> None:
        """应用 playwright-stealth 补丁, 再追加语言与插件脚本."""
        if self.context is None:
            raise RuntimeError("浏览器上下文未启动")
        try:
            await Stealth().apply_stealth_async(self.context)
            logger.debug("已应用反检测补丁")
        except PlaywrightError as exc:
            logger.warning("应用反检测补丁失败: {}", exc)
        await self.context.add_init_script(STEALTH_INIT_SCRIPT)

    async def apply_cookies(self, cookies: Iterable[Mapping[str, Any]]) -> int:
        """规范化并写入 Cookie, 返回写入数量."""
        if self.context is None:
            raise RuntimeError("浏览器上下文未启动")
        normalized = [normalize_cookie(cookie, self.marketplace.base_url) for cookie in cookies]
        if normalized:
            await self.context.add_cookies(normalized)
        logger.info("已写入 {} 个 Cookie", len(normalized))
        return len(normalized)

    async def get_cookies(self) -> list[dict[str, Any]]:
        if self.context is None:
            return []
        return [dict(cookie) for cookie in await self.context.cookies()]

    async def snapshot(self) -> str | None:
        """当前视口截图(base64 PNG); 失败返回 None."""
        if self.page is None:
            return None
        try:
            data = await self.page.screenshot(type="png", full_page=False, timeout=5000)
        except Exception as exc:
            logger.debug("截图失败: {}", exc)
            return None
        return base64.b64encode(data).decode("ascii")

    async def _close_step(
        self, name: str, closer: Callable[[], Any], timeout: float, errors: list[tuple[str, Exception]]
    ) -> None:
        try:
            await asyncio.wait_for(closer(), timeout=timeout)
        except TimeoutError:
            errors.append((name, TimeoutError(f"{name}.close() 超时 ({timeout}s)")))
            logger.warning("{}.close() 超时 ({}s)", name, timeout)
        except Exception as exc:
            errors.append((name, exc))
            logger.debug("{}.close() 失败: {}", name, exc)

    async def close(self) -> None:
        """关闭浏览器, 清理顺序: Page -> Context -> Browser -> Playwright."""
        errors: list[tuple[str, Exception]] = []

        try:
            if self.page:
                await self._close_step("page", self.page.close, 5.0, errors)
        finally:
            self.page = None

        try:
            if self.context:
                await self._close_step("context", self.context.close, 5.0, errors)
        finally:
            self.context = None

        try:
            if self.browser:
                await self._close_step("browser", self.browser.close, 10.0, errors)
        finally:
            self.browser = None

        try:
            if self.playwright:
                await self._close_step("playwright", self.playwright.stop, 5.0, errors)
        finally:
            self.playwright = None

        if errors:
            error_summary = ", ".join(f"{name}:{type(e).__name__}" for name, e in errors)
            logger.warning("浏览器关闭过程中有 {} 个错误: {}", len(errors), error_summary)
        else:
            logger.info("浏览器已关闭")

    async def __aenter__(self) -> BrowserSession:
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


BrowserFactory = Callable[[MarketplaceSession], BrowserSession]


def default_browser_factory(session: MarketplaceSession) -> BrowserSession:
    """按会话身份字符串创建浏览器会话."""
    return BrowserSession(user_agent=session.identity_string)
