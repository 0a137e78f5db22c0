"""
@PURPOSE: CLI 命令模块包初始化
@OUTLINE:
  - 导出所有命令组
@DEPENDENCIES:
  - 内部: cli.commands.*
"""

from .category import category_app
from .config import config_app
from .publish import publish_app

__all__ = [
    "category_app",
    "config_app",
    "publish_app",
]
