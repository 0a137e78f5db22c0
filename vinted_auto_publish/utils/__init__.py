"""
@PURPOSE: 通用工具: 日志设置与页面等待原语
"""

from .logger_setup import get_logger_with_context, log_section, setup_logger
from .page_waiter import PageWaiter, WaitStrategy

__all__ = [
    "PageWaiter",
    "WaitStrategy",
    "get_logger_with_context",
    "log_section",
    "setup_logger",
]
