"""
@PURPOSE: Vinted 会话控制 - 应用已登录 Cookie、处理 Cookie 横幅、探测登录状态、凭据登录
@OUTLINE:
  - class SessionController: 会话控制器
    - async def open_authenticated(): 首页 -> 写 Cookie -> 刷新 -> 横幅 -> 登录探测
    - async def dismiss_cookie_banner(): 关闭 Cookie 横幅(尽力而为)
    - async def is_logged_in(): 登录状态探测(尽力而为)
    - async def login(): 凭据登录, 返回可复用的 MarketplaceSession
@GOTCHAS:
  - 必须先打开首页再写 Cookie, 写完后刷新页面 Cookie 才生效
  - 登录探测失败只记录警告; 未登录时进入发布页会被重定向, 由页面标识校验报告 WrongPage
  - 用户菜单等链接元素不会被定位器选中, 登录探测只看非链接控件
  - 账号与密码逐字输入(随机按键间隔), 不使用 fill
@DEPENDENCIES:
  - 外部: playwright, loguru
  - 内部: browser_session, element_locator, strategies, models.listing, errors
@RELATED: workflows/publish_workflow.py, cli/commands/publish.py
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config.settings import MarketplaceConfig, settings
from ..errors import LoginFailedError
from ..models.listing import MarketplaceSession, SessionCookie
from .element_locator import ElementLocator
from .strategies import AttributeStrategy, ContainsTextStrategy, RoleStrategy

if TYPE_CHECKING:
    from .browser_session import BrowserSession

MIN_LOGIN_COOKIES = 3


class SessionController:
    """Vinted 会话控制器."""

    COOKIE_BANNER_STRATEGIES = (
        RoleStrategy("button", re.compile(r"akzeptieren|accept", re.IGNORECASE), exact=False),
        ContainsTextStrategy("Akzeptieren"),
        AttributeStrategy('button[id*="onetrust-accept"]'),
        AttributeStrategy('button[id*="accept-cookies"]'),
    )

    USER_MENU_STRATEGIES = (
        RoleStrategy("button", re.compile(r"profil|account|user", re.IGNORECASE), exact=False),
        AttributeStrategy('[data-testid="user-menu"]'),
        AttributeStrategy('[data-testid="header-user-menu"]'),
        AttributeStrategy('button[data-testid="user-menu-button"]'),
    )

    LOGIN_BUTTON_STRATEGIES = (
        AttributeStrategy('button[data-testid="header-login-button"]'),
        RoleStrategy("button", re.compile(r"einloggen|anmelden|log in", re.IGNORECASE), exact=False),
        ContainsTextStrategy("Einloggen"),
    )

    def __init__(
        self,
        browser: BrowserSession,
        *,
        locator: ElementLocator | None = None,
        marketplace: MarketplaceConfig | None = None,
        navigation_timeout_ms: int | None = None,
    ) -> None:
        self.browser = browser
        self.locator = locator or ElementLocator()
        self.probe_locator = ElementLocator(
            attempts=1,
            retry_delay_ms=0,
            action_timeout_ms=self.locator.action_timeout_ms,
        )
        self.marketplace = marketplace or settings.marketplace
        self.navigation_timeout_ms = navigation_timeout_ms or settings.browser.timeout

    @property
    def page(self):
        if self.browser.page is None:
            raise RuntimeError("浏览器页面未启动")
        return self.browser.page

    async def open_authenticated(self, session: MarketplaceSession) -> bool:
        """打开首页并应用已登录会话.

        Returns:
            登录探测结果(仅供日志参考)
        """
        page = self.page
        logger.info("打开首页: {}", self.marketplace.base_url)
        await page.goto(
            self.marketplace.base_url,
            wait_until="domcontentloaded",
            timeout=self.navigation_timeout_ms,
        )

        await self.browser.apply_cookies(session.cookie_dicts())
        logger.debug("刷新页面以激活 Cookie")
        await page.reload(wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)

        await self.dismiss_cookie_banner()

        logged_in = await self.is_logged_in()
        if logged_in:
            logger.success("Cookie 会话有效, 已登录")
        else:
            logger.warning("未检测到登录状态, 继续执行(发布页校验会给出最终结论)")
        return logged_in

    async def dismiss_cookie_banner(self) -> bool:
        """关闭 Cookie 横幅, 没有横幅时返回 False."""
        try:
            result = await self.probe_locator.run_chain(
                self.page,
                self.COOKIE_BANNER_STRATEGIES,
                label="Cookie 横幅",
                action=lambda candidate: candidate.click(timeout=self.locator.action_timeout_ms),
                quiet=True,
            )
        except Exception as exc:
            logger.warning("处理 Cookie 横幅出错: {}", exc)
            return False

        if result.found:
            logger.info("Cookie 横幅已关闭 ({})", result.strategy)
            return True
        logger.debug("未发现 Cookie 横幅")
        return False

    async def is_logged_in(self) -> bool:
        """URL 不在登录页且存在用户菜单."""
        try:
            if self.marketplace.login_path_fragment in self.page.url:
                logger.info("当前在登录页, 未登录")
                return False
            result = await self.probe_locator.run_chain(
                self.page,
                self.USER_MENU_STRATEGIES,
                label="用户菜单",
                quiet=True,
            )
        except Exception as exc:
            logger.warning("登录状态探测失败: {}", exc)
            return False
        return result.found

    async def login(self, email: str, password: str) -> MarketplaceSession:
        """凭据登录.

        Args:
            email: 登录邮箱/用户名
            password: 密码

        Returns:
            可复用的会话(Cookie + User-Agent)

        Raises:
            LoginFailedError: 仍停留在登录页或 Cookie 数量不足
        """
        page = self.page
        base_url = self.marketplace.base_url.rstrip("/")
        await page.goto(base_url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        await self.dismiss_cookie_banner()

        logger.info("点击页头登录按钮...")
        clicked = await self.locator.run_chain(
            page,
            self.LOGIN_BUTTON_STRATEGIES,
            label="登录按钮",
            action=lambda candidate: candidate.click(timeout=self.locator.action_timeout_ms),
            quiet=True,
        )
        if not clicked.found:
            login_url = f"{base_url}{self.marketplace.login_path_fragment}"
            logger.info("未找到登录按钮, 直接打开登录页: {}", login_url)
            await page.goto(login_url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)

        for selectors, value, label in (
            (("input#username", 'input[name="username"]'), email, "用户名"),
            (("input#password", 'input[name="password"]'), password, "密码"),
        ):
            filled = await self.locator.run_chain(
                page,
                [AttributeStrategy(selector) for selector in selectors],
                label=label,
                action=self.locator.typing_action(value),
            )
            if not filled.found:
                raise LoginFailedError(f"登录表单缺少{label}输入框", url=page.url)

        submitted = await self.locator.run_chain(
            page,
            [AttributeStrategy('button[type="submit"]')],
            label="登录提交按钮",
            action=lambda candidate: candidate.click(timeout=self.locator.action_timeout_ms),
        )
        if not submitted.found:
            raise LoginFailedError("未找到登录提交按钮", url=page.url)

        try:
            await page.wait_for_load_state("networkidle", timeout=15000)
        except PlaywrightTimeoutError:
            logger.warning("登录提交后等待 networkidle 超时, 继续检查")

        if self.marketplace.login_path_fragment in page.url:
            raise LoginFailedError("登录失败, 仍在登录页(检查凭据或验证码)", url=page.url)

        cookies = await self.browser.get_cookies()
        if len(cookies) < MIN_LOGIN_COOKIES:
            raise LoginFailedError(f"登录后 Cookie 数量不足: {len(cookies)}", url=page.url)

        logger.success("登录成功, 获取 {} 个 Cookie", len(cookies))
        return MarketplaceSession(
            cookies=[SessionCookie.model_validate(cookie) for cookie in cookies],
            identity_string=self.browser.user_agent,
        )
