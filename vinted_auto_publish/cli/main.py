"""
@PURPOSE: CLI 主入口 - Vinted 自动发布命令行工具
@OUTLINE:
  - app: Typer 主应用
  - 集成命令组(category/publish/config)
  - version(): 版本信息
@GOTCHAS:
  - .env 在导入配置之前加载, ENVIRONMENT 等变量才能生效
  - 日志在回调中配置, 导入包本身不产生日志副作用
  - 使用 publish 命令前需安装 Playwright 浏览器(playwright install chromium)
@DEPENDENCIES:
  - 内部: cli.commands.*, config.settings, utils.logger_setup
  - 外部: typer, rich, python-dotenv
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path.cwd() / ".env")

import typer
from rich.console import Console

from .. import __version__
from ..config.settings import settings
from ..utils.logger_setup import setup_logger
from .commands.category import category_app
from .commands.config import config_app
from .commands.publish import publish_app

app = typer.Typer(
    name="vinted-auto-publish",
    help="Vinted 自动发布工具",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(category_app, name="category")
app.add_typer(publish_app, name="publish")
app.add_typer(config_app, name="config")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="覆盖日志级别"),
):
    """Vinted 自动发布工具."""
    config = settings.logging
    if log_level:
        config = config.model_copy(update={"level": log_level.upper()})
    setup_logger(config, force=True)


@app.command()
def version():
    """显示版本信息.

    Examples:
        vinted-auto-publish version
    """
    console.print("\n[bold cyan]Vinted 自动发布[/bold cyan]")
    console.print(f"版本: [bold]{__version__}[/bold]")
    console.print("\n环境配置:")
    console.print(f"  环境: {settings.environment}")
    console.print(f"  站点: {settings.marketplace.base_url}")
    console.print(f"  Python: {sys.version.split()[0]}")


if __name__ == "__main__":
    app()
