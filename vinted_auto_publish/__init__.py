"""
@PURPOSE: Vinted 自动发布引擎包入口
@OUTLINE:
  - __version__: 包版本
"""

__version__ = "1.0.0"
