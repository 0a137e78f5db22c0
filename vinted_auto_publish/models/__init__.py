"""
@PURPOSE: 数据模型包, 导出类目、输入与结果模型
@DEPENDENCIES:
  - 内部: .taxonomy, .listing, .result
"""

from .listing import Listing, MarketplaceSession, SessionCookie
from .result import PhotoFailure, PhotoIngestionResult, PublishOutcome, PublishStatus
from .taxonomy import PATH_SEPARATOR, CategoryQuery, ScoredCandidate, TaxonomyNode

__all__ = [
    "PATH_SEPARATOR",
    "CategoryQuery",
    "Listing",
    "MarketplaceSession",
    "PhotoFailure",
    "PhotoIngestionResult",
    "PublishOutcome",
    "PublishStatus",
    "ScoredCandidate",
    "SessionCookie",
    "TaxonomyNode",
]
