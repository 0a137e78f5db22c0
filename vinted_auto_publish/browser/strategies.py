"""
@PURPOSE: 元素定位策略链 - 每个策略是一次有名字的、无状态的定位尝试
@OUTLINE:
  - class ResolutionStrategy: 策略基类(返回候选定位器 + 文案校验)
  - class AttributeStrategy: 结构属性选择器(id/name/data-testid)
  - class RoleStrategy: 可访问角色 + 名称
  - class LabelStrategy: <label> 关联
  - class PlaceholderStrategy: 占位符
  - class ExactTextStrategy: 精确文案
  - class CaseInsensitiveTextStrategy: 忽略大小写的整串文案
  - class ScopedTextStrategy: 作用域内文案
  - class ListItemStrategy: 列表项精确文案
  - class ContainsTextStrategy: 通用包含匹配(最后兜底)
  - def build_field_strategies(): 字段的固定策略链
  - def build_option_strategies(): 选项/类目层级的固定策略链
@GOTCHAS:
  - 策略只负责"找候选", 可见性/链接安全/作用域偏好由 ElementLocator 统一校验
  - 每次定位都重新构建与执行策略, 不缓存(页面随时变化)
  - 第一级类目使用专用的 first-category 选择器, 更深层级共用通用链
@DEPENDENCIES:
  - 外部: playwright
@RELATED: element_locator.py, targets.py
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .targets import (
    ANY_LEVEL_OPTION_SELECTOR,
    FIRST_LEVEL_OPTION_SELECTOR,
    FieldSpec,
    OptionTarget,
)

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page


class ResolutionStrategy:
    """策略基类.

    Attributes:
        name: 策略名, 用于日志与 NotFound 诊断
        expected_text: 候选元素的去空白文案必须等于该值(None 表示不校验)
        case_sensitive: 文案校验是否区分大小写
    """

    kind = "strategy"

    def __init__(
        self,
        detail: str,
        *,
        expected_text: str | None = None,
        case_sensitive: bool = True,
    ) -> None:
        self.name = f"{self.kind}:{detail}"
        self.expected_text = expected_text
        self.case_sensitive = case_sensitive

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    def _query(self, page: Page) -> Locator:
        raise NotImplementedError

    async def candidates(self, page: Page) -> list[Locator]:
        return await self._query(page).all()

    def accepts_text(self, text: str | None) -> bool:
        if self.expected_text is None:
            return True
        actual = " ".join((text or "").split())
        expected = " ".join(self.expected_text.split())
        if self.case_sensitive:
            return actual == expected
        return actual.lower() == expected.lower()


class AttributeStrategy(ResolutionStrategy):
    kind = "attribute"

    def __init__(self, selector: str, *, expected_text: str | None = None) -> None:
        super().__init__(selector, expected_text=expected_text)
        self.selector = selector

    def _query(self, page: Page) -> Locator:
        return page.locator(self.selector)


class RoleStrategy(ResolutionStrategy):
    kind = "role"

    def __init__(
        self, role: str, accessible_name: str | re.Pattern[str], *, exact: bool = True
    ) -> None:
        shown = getattr(accessible_name, "pattern", accessible_name)
        super().__init__(f"{role}[{shown}]")
        self.role = role
        self.accessible_name = accessible_name
        self.exact = exact

    def _query(self, page: Page) -> Locator:
        return page.get_by_role(self.role, name=self.accessible_name, exact=self.exact)


class LabelStrategy(ResolutionStrategy):
    kind = "label"

    def __init__(self, label: str) -> None:
        super().__init__(label)
        self.label = label

    def _query(self, page: Page) -> Locator:
        return page.get_by_label(self.label, exact=False)


class PlaceholderStrategy(ResolutionStrategy):
    kind = "placeholder"

    def __init__(self, placeholder: str) -> None:
        super().__init__(placeholder)
        self.placeholder = placeholder

    def _query(self, page: Page) -> Locator:
        return page.get_by_placeholder(self.placeholder, exact=False)


class ExactTextStrategy(ResolutionStrategy):
    kind = "text-exact"

    def __init__(self, text: str) -> None:
        super().__init__(text, expected_text=text)
        self.text = text

    def _query(self, page: Page) -> Locator:
        return page.get_by_text(self.text, exact=True)


class CaseInsensitiveTextStrategy(ResolutionStrategy):
    kind = "text-ci"

    def __init__(self, text: str) -> None:
        super().__init__(text, expected_text=text, case_sensitive=False)
        self.pattern = re.compile(rf"^\s*{re.escape(text)}\s*$", re.IGNORECASE)

    def _query(self, page: Page) -> Locator:
        return page.get_by_text(self.pattern)


class ScopedTextStrategy(ResolutionStrategy):
    kind = "scoped-text"

    def __init__(self, scope: str, text: str) -> None:
        super().__init__(f"{scope}::{text}")
        self.scope = scope
        self.text = text

    def _query(self, page: Page) -> Locator:
        return page.locator(self.scope).get_by_text(self.text, exact=False)


class ListItemStrategy(AttributeStrategy):
    kind = "list-item"

    def __init__(self, text: str) -> None:
        super().__init__("li", expected_text=text)
        self.name = f"{self.kind}:{text}"


class ContainsTextStrategy(ResolutionStrategy):
    kind = "text-contains"

    def __init__(self, text: str, *, expected_text: str | None = None) -> None:
        super().__init__(text, expected_text=expected_text)
        self.text = text

    def _query(self, page: Page) -> Locator:
        return page.get_by_text(self.text, exact=False)


def build_field_strategies(spec: FieldSpec) -> list[ResolutionStrategy]:
    """字段策略链: 属性 -> 角色 -> label -> 占位符 -> 表单内文案 -> 通用包含."""
    strategies: list[ResolutionStrategy] = [AttributeStrategy(s) for s in spec.selectors]
    if spec.aria_role:
        strategies.extend(RoleStrategy(spec.aria_role, text, exact=False) for text in spec.texts)
    strategies.extend(LabelStrategy(label) for label in spec.labels)
    strategies.extend(PlaceholderStrategy(placeholder) for placeholder in spec.placeholders)
    if spec.scope:
        strategies.extend(ScopedTextStrategy(spec.scope, text) for text in spec.texts)
    strategies.extend(ContainsTextStrategy(text) for text in spec.texts)
    return strategies


def build_option_strategies(target: OptionTarget) -> list[ResolutionStrategy]:
    """选项策略链; 第一级类目以 first-category 选择器打头."""
    label = target.label
    strategies: list[ResolutionStrategy] = []
    if target.is_first_level:
        strategies.append(AttributeStrategy(FIRST_LEVEL_OPTION_SELECTOR, expected_text=label))
    if target.level is not None:
        strategies.append(AttributeStrategy(ANY_LEVEL_OPTION_SELECTOR, expected_text=label))
    strategies.extend(
        [
            ExactTextStrategy(label),
            RoleStrategy("button", label),
            RoleStrategy("option", label),
            CaseInsensitiveTextStrategy(label),
            ListItemStrategy(label),
            ContainsTextStrategy(label, expected_text=label),
        ]
    )
    return strategies
