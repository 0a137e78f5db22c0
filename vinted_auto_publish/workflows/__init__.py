"""
@PURPOSE: 发布工作流
@DEPENDENCIES:
  - 内部: .publish_workflow
"""

from .publish_workflow import PublishWorkflow, extract_listing_id

__all__ = ["PublishWorkflow", "extract_listing_id"]
