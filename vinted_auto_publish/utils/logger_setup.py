"""
@PURPOSE: 日志系统设置 - 配置结构化日志、日志轮转和多级别输出
@OUTLINE:
  - def setup_logger(): 配置全局日志系统
  - def get_logger_with_context(): 获取带上下文的logger
  - def format_detailed(): 详细格式化器
  - def format_json(): JSON格式化器
  - def format_simple(): 简单格式化器
  - def log_section(): 分隔行
  - def log_dict(): 记录字典
@GOTCHAS:
  - loguru 会自动管理日志轮转
  - 不在导入时配置, 由 CLI 入口调用 setup_logger()
  - 上下文键: attempt_id / stage / level(类目层级) / field
@DEPENDENCIES:
  - 外部: loguru
  - 内部: config.settings
"""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger

from ..config.settings import LoggingConfig, settings

CONTEXT_KEYS = ("attempt_id", "stage", "level", "field")


def _escape(value: Any) -> str:
    return str(value).replace("{", "{{").replace("}", "}}").replace("<", r"\<")


# ========== 日志格式化器 ==========


def format_detailed(record: dict[str, Any]) -> str:
    """详细格式化器（开发环境）.

    Args:
        record: 日志记录

    Returns:
        格式化后的日志模板
    """
    extra = record["extra"]
    context_parts = []
    attempt_id = extra.get("attempt_id", "")
    if attempt_id:
        context_parts.append(f"attempt={_escape(str(attempt_id)[:8])}")
    for key in CONTEXT_KEYS[1:]:
        if extra.get(key) not in (None, ""):
            context_parts.append(f"{key}={_escape(extra[key])}")

    context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
        f"{context_str} - "
        "<level>{message}</level>\n"
        "{exception}"
    )


def format_json(record: dict[str, Any]) -> str:
    """JSON格式化器（生产环境）.

    JSON 先写入 record["extra"]["serialized"], 模板只引用该字段,
    避免日志内容中的花括号被 loguru 当作模板解析.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    extra = record["extra"]
    context = {key: extra[key] for key in CONTEXT_KEYS if key in extra}
    if context:
        log_entry["context"] = context

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    extra["serialized"] = json.dumps(log_entry, ensure_ascii=False, default=str)
    return "{extra[serialized]}\n"


def format_simple(record: dict[str, Any]) -> str:
    return "{time:HH:mm:ss} | {level: <8} | {message}\n"


FORMATTERS = {
    "detailed": format_detailed,
    "json": format_json,
    "simple": format_simple,
}


# ========== 日志设置 ==========


def setup_logger(config: LoggingConfig | None = None, force: bool = False) -> None:
    """配置全局日志系统.

    Args:
        config: 日志配置，默认使用 settings.logging
        force: 是否移除已有处理器后重新配置

    Examples:
        >>> from vinted_auto_publish.utils.logger_setup import setup_logger
        >>> setup_logger()
    """
    if config is None:
        config = settings.logging

    if force:
        logger.remove()

    formatter = FORMATTERS.get(config.format, format_detailed)

    if "console" in config.output:
        logger.add(
            sys.stderr,
            format=formatter,
            level=config.level,
            colorize=config.format != "json",
            backtrace=True,
            diagnose=False,
        )

    if "file" in config.output:
        log_file = settings.get_absolute_path(config.file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_file),
            format=formatter,
            level=config.level,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
            encoding="utf-8",
        )

    logger.debug(
        "日志系统已配置: level={}, format={}, output={}",
        config.level,
        config.format,
        config.output,
    )


def get_logger_with_context(**context: Any) -> Any:
    """获取带上下文的logger.

    Examples:
        >>> log = get_logger_with_context(attempt_id="a1b2c3d4", stage="category")
        >>> log.info("开始选择类目")
    """
    return logger.bind(**context)


# ========== 便捷函数 ==========


def log_section(title: str, char: str = "=", width: int = 60) -> None:
    """记录分隔行."""
    logger.info(char * width)
    logger.info(title)
    logger.info(char * width)


def log_dict(data: dict[str, Any], title: str | None = None) -> None:
    if title:
        logger.info("{}:", title)
    for key, value in data.items():
        logger.info("  {}: {}", key, value)
