"""
@PURPOSE: 定义发布流程执行结果的数据结构
@OUTLINE:
  - class PublishStatus: 发布结果状态枚举
  - class PhotoFailure: 单张图片失败记录
  - class PhotoIngestionResult: 图片上传汇总结果
  - class PublishOutcome: 单次发布尝试的结构化结果
@GOTCHAS:
  - listing_id 只在 Success 时存在; failing_level 只在类目失败时存在
  - snapshot 为尽力而为的 base64 截图, 缺失不代表错误
@DEPENDENCIES:
  - 外部: pydantic
@RELATED: workflows/publish_workflow.py, browser/photo_ingestor.py
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class PublishStatus(StrEnum):
    """发布结果状态."""

    SUCCESS = "Success"
    FIELD_RESOLUTION_FAILED = "FieldResolutionFailed"
    NAVIGATION_INTEGRITY_VIOLATION = "NavigationIntegrityViolation"
    PHOTO_INGESTION_FAILED = "PhotoIngestionFailed"
    SUBMISSION_REJECTED = "SubmissionRejected"
    TIMEOUT = "Timeout"


class PhotoFailure(BaseModel):
    """单张图片失败记录.

    Attributes:
        index: 图片在输入列表中的序号(从0开始)
        url: 图片地址
        stage: 失败阶段(download/inject/settle)
        reason: 失败原因
    """

    index: int = Field(..., ge=0, description="图片序号")
    url: str = Field(..., description="图片地址")
    stage: str = Field(..., description="失败阶段")
    reason: str = Field(..., description="失败原因")


class PhotoIngestionResult(BaseModel):
    """图片上传汇总结果.

    Attributes:
        requested_count: 实际处理的图片数(已按上限截断)
        uploaded_count: 成功上传数
        failures: 失败记录
        skipped_count: 超出上限被忽略的图片数
        scratch_files: 本次创建过的临时文件路径(返回时均已删除)
    """

    requested_count: int = Field(default=0, ge=0, description="处理图片数")
    uploaded_count: int = Field(default=0, ge=0, description="成功上传数")
    failures: list[PhotoFailure] = Field(default_factory=list, description="失败记录")
    skipped_count: int = Field(default=0, ge=0, description="超出上限数")
    scratch_files: list[str] = Field(default_factory=list, description="临时文件路径")

    @property
    def is_empty_failure(self) -> bool:
        """输入非空但一张都没成功."""
        return self.requested_count > 0 and self.uploaded_count == 0


class PublishOutcome(BaseModel):
    """单次发布尝试的结构化结果.

    Attributes:
        status: 结果状态
        attempt_id: 本次尝试ID(日志关联用)
        final_url: 结束时页面 URL
        listing_id: 商品ID, 仅成功时存在
        failing_level: 类目失败的层级
        failing_segment: 类目失败的路径段
        error_code: 机器可读错误码
        diagnostic: 人类可读的诊断信息
        attempted_strategies: 定位失败时尝试过的策略名
        resolved_category: 本次解析得到的类目路径
        warnings: 非致命问题(可选字段未填等)
        photos: 图片上传结果
        snapshot: 失败时的 base64 截图
        elapsed: 耗时(秒)
        completed_at: 完成时间
    """

    status: PublishStatus = Field(..., description="结果状态")
    attempt_id: str = Field(default="", description="尝试ID")
    final_url: str | None = Field(default=None, description="最终URL")
    listing_id: str | None = Field(default=None, description="商品ID")
    failing_level: int | None = Field(default=None, description="失败层级")
    failing_segment: str | None = Field(default=None, description="失败路径段")
    error_code: str | None = Field(default=None, description="错误码")
    diagnostic: str | None = Field(default=None, description="诊断信息")
    attempted_strategies: list[str] = Field(default_factory=list, description="尝试过的策略")
    resolved_category: str | None = Field(default=None, description="解析出的类目")
    warnings: list[str] = Field(default_factory=list, description="非致命问题")
    photos: PhotoIngestionResult | None = Field(default=None, description="图片上传结果")
    snapshot: str | None = Field(default=None, description="失败截图(base64)")
    elapsed: float = Field(default=0.0, description="耗时")
    completed_at: str = Field(
        default_factory=lambda: datetime.now().isoformat(), description="完成时间"
    )

    @property
    def success(self) -> bool:
        return self.status == PublishStatus.SUCCESS

    def to_summary(self) -> dict[str, Any]:
        """输出不含截图的摘要, 便于日志与 CLI 打印."""
        return self.model_dump(mode="json", exclude={"snapshot"})
