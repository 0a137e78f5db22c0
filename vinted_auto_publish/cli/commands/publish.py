"""
@PURPOSE: CLI 发布命令 - 执行一次发布尝试、凭据登录导出会话
@OUTLINE:
  - publish_app: Typer 发布命令组
  - run(): 读取商品与会话 JSON, 执行发布并输出结果
  - login(): 使用 .env 中的凭据登录, 保存会话 JSON
@GOTCHAS:
  - run 的退出码: Success 为 0, 其他状态为 1, 输入文件错误为 2
  - 结果 JSON 不包含截图, 截图另存到 data/debug(开启 --save-snapshot 时)
@DEPENDENCIES:
  - 内部: workflows.publish_workflow, browser.*, models.listing
  - 外部: typer, rich, pydantic
"""

import asyncio
import base64
import json
from datetime import datetime
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console

from ...browser.browser_session import BrowserSession
from ...browser.session_controller import SessionController
from ...config.settings import settings
from ...errors import LoginFailedError
from ...models.listing import Listing, MarketplaceSession
from ...workflows.publish_workflow import PublishWorkflow

publish_app = typer.Typer(
    name="publish",
    help="发布商品与会话管理",
)

console = Console()


def _load_json(path: Path, label: str) -> dict:
    if not path.exists():
        console.print(f"[red]✗[/red] {label}文件不存在: {path}")
        raise typer.Exit(2)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]✗[/red] {label}文件不是有效 JSON: {exc}")
        raise typer.Exit(2) from None


def _save_snapshot(data: str, attempt_id: str) -> Path:
    debug_dir = settings.get_absolute_path(settings.data_debug_dir)
    debug_dir.mkdir(parents=True, exist_ok=True)
    target = debug_dir / f"failure_{attempt_id}_{datetime.now():%Y%m%d_%H%M%S}.png"
    target.write_bytes(base64.b64decode(data))
    return target


@publish_app.command("run")
def run(
    listing_file: Path = typer.Argument(..., help="商品数据文件(JSON)"),
    session_file: Path = typer.Argument(..., help="会话文件(JSON, cookies + identityString)"),
    headless: bool | None = typer.Option(None, "--headless/--no-headless", help="覆盖无头模式"),
    save_snapshot: bool = typer.Option(False, "--save-snapshot", help="失败时保存截图"),
):
    """执行一次发布.

    Examples:
        vinted-auto-publish publish run listing.json session.json
        vinted-auto-publish publish run listing.json session.json --no-headless
    """
    try:
        listing = Listing.model_validate(_load_json(listing_file, "商品"))
        session = MarketplaceSession.model_validate(_load_json(session_file, "会话"))
    except ValidationError as exc:
        console.print(f"[red]✗[/red] 输入数据无效:\n{exc}")
        raise typer.Exit(2) from None

    def factory(current: MarketplaceSession) -> BrowserSession:
        return BrowserSession(user_agent=current.identity_string, headless=headless)

    outcome = asyncio.run(PublishWorkflow(browser_factory=factory).publish(listing, session))

    console.print_json(json.dumps(outcome.to_summary(), ensure_ascii=False))
    if outcome.snapshot and save_snapshot:
        path = _save_snapshot(outcome.snapshot, outcome.attempt_id)
        console.print(f"截图已保存: {path}")

    if outcome.success:
        console.print(f"\n[green]✓[/green] 发布成功: {outcome.final_url}")
        return
    console.print(f"\n[red]✗[/red] 发布失败: {outcome.status} ({outcome.error_code})")
    raise typer.Exit(1)


async def _login(email: str, password: str, headless: bool | None) -> MarketplaceSession:
    async with BrowserSession(headless=headless) as browser:
        return await SessionController(browser).login(email, password)


@publish_app.command("login")
def login(
    output: Path = typer.Option(Path("data/session.json"), "--output", "-o", help="会话输出文件"),
    headless: bool | None = typer.Option(None, "--headless/--no-headless", help="覆盖无头模式"),
):
    """使用 VINTED_EMAIL / VINTED_PASSWORD 登录并保存会话.

    Examples:
        vinted-auto-publish publish login -o session.json --no-headless
    """
    if not settings.vinted_email or not settings.vinted_password:
        console.print("[red]✗[/red] 缺少登录凭证 (VINTED_EMAIL/VINTED_PASSWORD)")
        raise typer.Exit(2)

    try:
        session = asyncio.run(_login(settings.vinted_email, settings.vinted_password, headless))
    except LoginFailedError as exc:
        logger.error("登录失败: {} (URL: {})", exc.message, exc.url)
        console.print(f"[red]✗[/red] 登录失败: {exc.message}")
        raise typer.Exit(1) from None

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(
        json.dumps(session.model_dump(mode="json", by_alias=False), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    console.print(f"[green]✓[/green] 会话已保存: {output} ({len(session.cookies)} 个 Cookie)")
