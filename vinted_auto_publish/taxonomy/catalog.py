"""
@PURPOSE: 类目目录(Taxonomy Store), 从静态 JSON 加载只读的类目节点
@OUTLINE:
  - class TaxonomyCatalog: 只读类目目录
  - def load_catalog(): 从文件加载目录
  - def get_default_catalog(): 进程级缓存的默认目录
@GOTCHAS:
  - 只做结构校验(每个节点有非空路径), 不校验目录内部一致性
  - 目录加载后不可变, 可在并发的发布流程之间共享
@DEPENDENCIES:
  - 外部: loguru, pydantic
  - 内部: models.taxonomy, data
@RELATED: resolver.py, data/vinted_categories.json
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from functools import lru_cache
from pathlib import Path
from typing import Any

from loguru import logger

from ..data import DEFAULT_CATALOG_PATH
from ..models.taxonomy import PATH_SEPARATOR, TaxonomyNode


class TaxonomyCatalog:
    """只读类目目录.

    Examples:
        >>> catalog = TaxonomyCatalog.from_paths(["Damen → Kleidung → Sonstiges"])
        >>> catalog.find("Damen → Kleidung → Sonstiges").depth
        3
    """

    def __init__(self, nodes: Iterable[TaxonomyNode], version: str | None = None) -> None:
        self._nodes: tuple[TaxonomyNode, ...] = tuple(nodes)
        self._by_path: dict[str, TaxonomyNode] = {node.full_path: node for node in self._nodes}
        self.version = version

    @classmethod
    def from_paths(cls, paths: Iterable[str], version: str | None = None) -> TaxonomyCatalog:
        nodes = [TaxonomyNode.from_path(path, index=i) for i, path in enumerate(paths)]
        return cls(nodes, version=version)

    def __iter__(self) -> Iterator[TaxonomyNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> tuple[TaxonomyNode, ...]:
        return self._nodes

    def find(self, full_path: str) -> TaxonomyNode | None:
        return self._by_path.get(full_path)

    def branches(self) -> list[str]:
        """主分支列表, 保持目录顺序."""
        seen: dict[str, None] = {}
        for node in self._nodes:
            seen.setdefault(node.main_branch, None)
        return list(seen)

    def in_branch(self, branch: str | None) -> list[TaxonomyNode]:
        if branch is None:
            return list(self._nodes)
        return [node for node in self._nodes if node.main_branch == branch]

    def fallback_for(self, branch: str) -> TaxonomyNode:
        """分支下的 "Kleidung → Sonstiges" 兜底节点."""
        path = PATH_SEPARATOR.join([branch, "Kleidung", "Sonstiges"])
        node = self.find(path)
        if node is None:
            raise LookupError(f"类目目录缺少兜底节点: {path}")
        return node


def _parse_entries(raw: Any, source: Path | str) -> list[str]:
    entries = raw.get("categories") if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ValueError(f"类目目录格式错误, 需要 categories 列表: {source}")

    paths: list[str] = []
    for position, entry in enumerate(entries):
        path = entry.get("full_path") if isinstance(entry, dict) else entry
        if not isinstance(path, str) or not path.strip():
            raise ValueError(f"类目目录第 {position} 项缺少有效路径: {source}")
        paths.append(path)
    return paths


def load_catalog(path: Path | str | None = None) -> TaxonomyCatalog:
    """从 JSON 文件加载类目目录.

    支持两种格式: {"categories": [{"full_path": ...}]} 或路径字符串列表。

    Args:
        path: 目录文件路径, 默认使用包内 data/vinted_categories.json

    Returns:
        类目目录

    Raises:
        FileNotFoundError: 文件不存在
        ValueError: 结构不合法
    """
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    with catalog_path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)

    paths = _parse_entries(raw, catalog_path)
    version = raw.get("version") if isinstance(raw, dict) else None
    catalog = TaxonomyCatalog.from_paths(paths, version=version)
    logger.debug("类目目录已加载: {} 个节点 (版本 {})", len(catalog), version or "未知")
    return catalog


@lru_cache(maxsize=1)
def get_default_catalog() -> TaxonomyCatalog:
    """加载一次并缓存默认目录."""
    return load_catalog()
