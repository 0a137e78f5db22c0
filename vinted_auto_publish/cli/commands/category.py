"""
@PURPOSE: CLI 类目命令 - 浏览类目目录、测试类目解析
@OUTLINE:
  - category_app: Typer 类目命令组
  - list_categories(): 列出目录路径
  - resolve(): 打印解析候选及分数
@DEPENDENCIES:
  - 内部: taxonomy.*
  - 外部: typer, rich
"""

import typer
from rich.console import Console
from rich.table import Table

from ...taxonomy.catalog import get_default_catalog
from ...taxonomy.mappings import resolve_gender
from ...taxonomy.resolver import CategoryResolver

category_app = typer.Typer(
    name="category",
    help="类目目录与解析",
)

console = Console()


@category_app.command("list")
def list_categories(
    branch: str | None = typer.Option(
        None, "--branch", "-b", help="主分支(Damen/Herren/Kinder 或 women/men/kids)"
    ),
):
    """列出类目目录.

    Examples:
        vinted-auto-publish category list
        vinted-auto-publish category list --branch men
    """
    catalog = get_default_catalog()
    target = (resolve_gender(branch) or branch) if branch else None
    nodes = catalog.in_branch(target)

    if not nodes:
        console.print(f"[yellow]⚠[/yellow] 主分支 '{branch}' 下没有类目")
        console.print(f"  可用分支: {', '.join(catalog.branches())}")
        raise typer.Exit(1)

    for node in nodes:
        console.print(node.full_path)
    console.print(f"\n[dim]共 {len(nodes)} 个类目 (目录版本 {catalog.version})[/dim]")


@category_app.command("resolve")
def resolve(
    text: str = typer.Argument(..., help="类目文本, 例如 hoodie"),
    gender: str | None = typer.Option(None, "--gender", "-g", help="性别提示"),
    top: int = typer.Option(5, "--top", "-n", min=1, help="显示前 N 个候选"),
):
    """解析类目文本并显示候选.

    Examples:
        vinted-auto-publish category resolve hoodie --gender men
    """
    candidates = CategoryResolver().resolve(text, gender)

    table = Table(title=f"类目解析: {text}")
    table.add_column("#", justify="right")
    table.add_column("分数", justify="right", style="cyan")
    table.add_column("类目路径")
    for index, candidate in enumerate(candidates[:top], start=1):
        table.add_row(str(index), str(candidate.score), candidate.path)

    console.print(table)
    console.print(f"\n[bold]最佳:[/bold] {candidates[0].path}")
