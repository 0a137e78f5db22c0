"""
@PURPOSE: 类目树节点、查询与打分候选的数据结构
@OUTLINE:
  - PATH_SEPARATOR: 类目路径分隔符
  - class TaxonomyNode: 类目节点(不可变)
  - class CategoryQuery: 类目查询
  - class ScoredCandidate: 打分后的候选节点
@GOTCHAS:
  - 节点在进程启动时加载一次, 之后只读共享, 因此 frozen=True
  - depth 由 segments 推导, 不允许外部传入不一致的值
@DEPENDENCIES:
  - 外部: pydantic
@RELATED: taxonomy/catalog.py, taxonomy/resolver.py
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

PATH_SEPARATOR = " → "


class TaxonomyNode(BaseModel):
    """类目节点.

    Attributes:
        full_path: 完整路径字符串, 例如 "Damen → Kleidung → Tops & T-Shirts → T-Shirts"
        segments: 按层级拆分的路径段
        index: 在目录中的原始顺序(打分同分时的稳定排序依据)
    """

    model_config = ConfigDict(frozen=True)

    full_path: str = Field(..., min_length=1, description="完整路径")
    segments: tuple[str, ...] = Field(..., min_length=1, description="路径段")
    index: int = Field(default=0, ge=0, description="目录顺序")

    @field_validator("segments")
    @classmethod
    def validate_segments(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not segment.strip() for segment in v):
            raise ValueError("类目路径段不能为空")
        return v

    @classmethod
    def from_path(cls, full_path: str, index: int = 0) -> TaxonomyNode:
        """从路径字符串构造节点."""
        segments = tuple(part.strip() for part in full_path.split(PATH_SEPARATOR.strip()))
        return cls(full_path=full_path.strip(), segments=segments, index=index)

    @property
    def main_branch(self) -> str:
        """顶层分支(受众/性别分区)."""
        return self.segments[0]

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def last_segment(self) -> str:
        return self.segments[-1]


class CategoryQuery(BaseModel):
    """类目查询.

    Attributes:
        raw_text: 上游给出的自由文本类目
        gender_hint: 可选的性别/受众提示
    """

    raw_text: str = Field(default="", description="原始类目文本")
    gender_hint: str | None = Field(default=None, description="性别提示")

    @property
    def normalized_text(self) -> str:
        return self.raw_text.strip().lower()


class ScoredCandidate(BaseModel):
    """打分后的候选节点."""

    model_config = ConfigDict(frozen=True)

    node: TaxonomyNode
    score: int = 0
    matched_term: str | None = None

    @property
    def path(self) -> str:
        return self.node.full_path
