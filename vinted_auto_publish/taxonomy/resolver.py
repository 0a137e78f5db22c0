"""
@PURPOSE: 类目解析器, 将自由文本类目 + 性别提示打分匹配到类目目录中的节点
@OUTLINE:
  - SCORE_*: 打分常量
  - class CategoryResolver: 类目解析器
    - resolve(): 返回按分数降序的候选列表(非空)
    - best(): 返回最佳候选
  - def resolve_category(): 使用默认目录的便捷函数
@GOTCHAS:
  - 纯函数, 不接触页面
  - 无性别提示(或无法识别)时不限制主分支; 兜底节点使用解析出的分支, 否则使用默认分支 Damen
  - 同分时保持目录原始顺序(sorted 稳定排序)
@DEPENDENCIES:
  - 外部: loguru
  - 内部: models.taxonomy, taxonomy.catalog, taxonomy.mappings
@RELATED: browser/taxonomy_navigator.py, workflows/publish_workflow.py
"""

from __future__ import annotations

from loguru import logger

from ..models.taxonomy import CategoryQuery, ScoredCandidate, TaxonomyNode
from .catalog import TaxonomyCatalog, get_default_catalog
from .mappings import match_keyword, resolve_gender

SCORE_EXACT_LAST = 100
SCORE_EXACT_ANY = 50
SCORE_TERM_LAST = 30
SCORE_SWEET_DEPTH = 10
PENALTY_OVER_DEPTH = -5

SWEET_DEPTHS = (3, 4)
DEFAULT_BRANCH = "Damen"


class CategoryResolver:
    """类目解析器.

    Examples:
        >>> resolver = CategoryResolver()
        >>> resolver.best("hoodie", "men").path
        'Herren → Kleidung → Pullis & Hoodies → Hoodies'
    """

    def __init__(
        self,
        catalog: TaxonomyCatalog | None = None,
        default_branch: str = DEFAULT_BRANCH,
    ) -> None:
        self.catalog = catalog or get_default_catalog()
        self.default_branch = default_branch

    def score(self, node: TaxonomyNode, normalized: str, terms: tuple[str, ...]) -> int:
        """按加性规则为单个节点打分."""
        lowered = [segment.lower() for segment in node.segments]
        total = 0
        if lowered[-1] == normalized:
            total += SCORE_EXACT_LAST
        if normalized in lowered:
            total += SCORE_EXACT_ANY
        if lowered[-1] in terms:
            total += SCORE_TERM_LAST
        if node.depth in SWEET_DEPTHS:
            total += SCORE_SWEET_DEPTH
        elif node.depth > max(SWEET_DEPTHS):
            total += PENALTY_OVER_DEPTH
        return total

    def resolve(self, raw_text: str | None, gender_hint: str | None = None) -> list[ScoredCandidate]:
        """解析类目.

        Args:
            raw_text: 自由文本类目(任意大小写)
            gender_hint: 可选性别提示

        Returns:
            非空候选列表, 按分数降序; 无匹配时只含兜底节点(分数 0)
        """
        query = CategoryQuery(raw_text=raw_text or "", gender_hint=gender_hint)
        normalized = query.normalized_text
        branch = resolve_gender(query.gender_hint)
        if query.gender_hint and branch is None:
            logger.debug("无法识别的性别提示 '{}', 不限制主分支", query.gender_hint)

        matched = match_keyword(normalized) if normalized else None
        candidates: list[ScoredCandidate] = []
        if matched is not None:
            keyword, terms = matched
            for node in self.catalog.in_branch(branch):
                path_lower = node.full_path.lower()
                if not any(term in path_lower for term in terms):
                    continue
                candidates.append(
                    ScoredCandidate(
                        node=node,
                        score=self.score(node, normalized, terms),
                        matched_term=keyword,
                    )
                )

        if not candidates:
            fallback = self.catalog.fallback_for(branch or self.default_branch)
            logger.warning("未找到匹配类目 '{}', 使用兜底: {}", raw_text, fallback.full_path)
            return [ScoredCandidate(node=fallback, score=0)]

        ranked = sorted(candidates, key=lambda candidate: -candidate.score)
        logger.debug(
            "类目解析 '{}' ({}): {} 个候选, 最佳 {} [{}]",
            raw_text,
            branch or "不限",
            len(ranked),
            ranked[0].path,
            ranked[0].score,
        )
        return ranked

    def best(self, raw_text: str | None, gender_hint: str | None = None) -> ScoredCandidate:
        return self.resolve(raw_text, gender_hint)[0]


def resolve_category(raw_text: str | None, gender_hint: str | None = None) -> list[ScoredCandidate]:
    """使用默认目录解析类目."""
    return CategoryResolver().resolve(raw_text, gender_hint)
