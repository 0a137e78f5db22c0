"""
@PURPOSE: 类目目录与类目解析
@DEPENDENCIES:
  - 内部: .catalog, .resolver, .mappings
"""

from .catalog import TaxonomyCatalog, get_default_catalog, load_catalog
from .mappings import map_color, map_condition, resolve_gender
from .resolver import CategoryResolver, resolve_category

__all__ = [
    "CategoryResolver",
    "TaxonomyCatalog",
    "get_default_catalog",
    "load_catalog",
    "map_color",
    "map_condition",
    "resolve_category",
    "resolve_gender",
]
