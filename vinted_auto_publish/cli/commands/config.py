"""
@PURPOSE: CLI 配置命令 - 查看当前配置(敏感信息已隐藏)
@OUTLINE:
  - config_app: Typer 配置命令组
  - show(): 显示配置
@DEPENDENCIES:
  - 内部: config.settings
  - 外部: typer, rich, pyyaml
"""

import json

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

from ...config.settings import settings

config_app = typer.Typer(
    name="config",
    help="配置管理",
)

console = Console()


@config_app.command("show")
def show(
    format: str = typer.Option("yaml", "--format", "-f", help="输出格式(yaml/json)"),
):
    """显示当前配置.

    Examples:
        vinted-auto-publish config show
        vinted-auto-publish config show -f json
    """
    if format not in ("yaml", "json"):
        console.print(f"[red]✗[/red] 不支持的格式: {format}")
        raise typer.Exit(1)

    console.print(f"[bold]环境:[/bold] {settings.environment}\n")
    config_dict = settings.to_dict()

    if format == "json":
        output = json.dumps(config_dict, indent=2, ensure_ascii=False)
    else:
        output = yaml.dump(config_dict, allow_unicode=True, default_flow_style=False)

    console.print(Syntax(output, format, theme="monokai", line_numbers=False))
