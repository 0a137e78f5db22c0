"""
@PURPOSE: 定义发布流程的自定义异常, 与 PublishStatus 一一对应
@OUTLINE:
  - PublishError: 基类, 携带错误码、层级、路径段与尝试过的策略
  - WrongPageError: 交互前页面不是发布页
  - FieldResolutionError: 必填字段所有定位策略都失败
  - NavigationIntegrityError: 类目选择过程中页面发生跳转
  - PhotoIngestionError: 非空图片列表一张都没上传成功
  - SubmissionRejectedError: 本地前置校验失败或提交按钮不可用
  - PublishTimeoutError: 任一有界等待超时
  - LoginFailedError: 凭据登录失败(不属于发布流程)
@GOTCHAS:
  - 内部步骤只抛这些异常, 只有发布流程顶层把它们转换成 PublishOutcome
  - WrongPage 的状态为 NavigationIntegrityViolation, 但错误码保留 "WrongPage"
@DEPENDENCIES:
  - 内部: models.result
"""

from __future__ import annotations

from collections.abc import Sequence

from .models.result import PublishStatus


class PublishError(Exception):
    """发布流程异常基类."""

    status: PublishStatus = PublishStatus.SUBMISSION_REJECTED
    default_code: str = "PublishError"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        level: int | None = None,
        segment: str | None = None,
        attempted_strategies: Sequence[str] | None = None,
    ) -> None:
        """初始化发布异常.

        Args:
            message: 错误描述
            code: 机器可读错误码, 默认使用子类的 default_code
            level: 类目失败的层级
            segment: 类目失败的路径段或字段名
            attempted_strategies: 定位时尝试过的策略名
        """
        self.message = message
        self.code = code or self.default_code
        self.level = level
        self.segment = segment
        self.attempted_strategies = list(attempted_strategies or [])
        super().__init__(message)


class WrongPageError(PublishError):
    """交互前页面标识与发布页不一致."""

    status = PublishStatus.NAVIGATION_INTEGRITY_VIOLATION
    default_code = "WrongPage"


class FieldResolutionError(PublishError):
    status = PublishStatus.FIELD_RESOLUTION_FAILED
    default_code = "FieldResolutionFailed"


class NavigationIntegrityError(PublishError):
    status = PublishStatus.NAVIGATION_INTEGRITY_VIOLATION
    default_code = "NavigationIntegrityViolation"


class PhotoIngestionError(PublishError):
    status = PublishStatus.PHOTO_INGESTION_FAILED
    default_code = "PhotoIngestionFailed"


class SubmissionRejectedError(PublishError):
    status = PublishStatus.SUBMISSION_REJECTED
    default_code = "SubmissionRejected"


class PublishTimeoutError(PublishError):
    status = PublishStatus.TIMEOUT
    default_code = "Timeout"


class LoginFailedError(Exception):
    """凭据登录失败(仍停留在登录页或 Cookie 数量不足)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message)
