"""
@PURPOSE: 发布表单的语义字段目录与定位目标定义
@OUTLINE:
  - class FieldRole: 语义字段枚举
  - @dataclass FieldSpec: 字段的属性选择器/可访问名/占位符/可见性要求
  - @dataclass OptionTarget: 按精确文案定位的选项(类目层级或下拉选项)
  - FIELD_SPECS: 字段目录
  - UPLOAD_FORM_SCOPE / TAXONOMY_SCOPE / OPTION_SCOPE: 作用域选择器
  - PHOTO_THUMBNAIL_SELECTORS: 已上传图片缩略图选择器
@GOTCHAS:
  - 每个选择器只写一个 CSS 选择器(不用逗号并列), 便于策略名与命中统计一一对应
  - photo_input 是隐藏的 file input, require_visible=False
  - 文案同时包含德语与英语, Vinted.de 以德语为主
@RELATED: strategies.py, element_locator.py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class FieldRole(StrEnum):
    """发布表单的语义字段."""

    CATEGORY = "category"
    TITLE = "title"
    DESCRIPTION = "description"
    PRICE = "price"
    BRAND = "brand"
    SIZE = "size"
    CONDITION = "condition"
    COLOR = "color"
    PHOTO_INPUT = "photo_input"
    SUBMIT = "submit"
    UPLOAD_FORM = "upload_form"


# 上传表单, 用于把字段搜索限制在表单内, 避免命中页头导航
UPLOAD_FORM_SCOPE = 'form[action*="items"]'
# 类目选择面板
TAXONOMY_SCOPE = '[data-testid*="catalog"]'
# 下拉选项面板(品牌/尺码/成色/颜色)
OPTION_SCOPE = '[role="listbox"]'

FIRST_LEVEL_OPTION_SELECTOR = '[data-testid^="first-category-"]'
ANY_LEVEL_OPTION_SELECTOR = '[data-testid*="category"]'

# 已上传图片的缩略图, 数量增加即视为页面已接收
PHOTO_THUMBNAIL_SELECTORS = (
    '[data-testid^="photo-thumbnail"]',
    '[data-testid*="image-preview"]',
)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """字段定位描述.

    Attributes:
        role: 语义字段
        description: 日志中使用的中文描述
        selectors: 结构属性选择器(id/name/data-testid), 按优先级排列
        aria_role: 可访问角色(button/combobox/textbox), 为空则跳过角色策略
        texts: 可访问名/可见文案
        labels: <label> 文案
        placeholders: 占位符文案
        require_visible: 是否要求元素可见
        scope: 搜索作用域选择器
    """

    role: FieldRole
    description: str
    selectors: tuple[str, ...] = ()
    aria_role: str | None = None
    texts: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    placeholders: tuple[str, ...] = ()
    require_visible: bool = True
    scope: str | None = UPLOAD_FORM_SCOPE


@dataclass(frozen=True, slots=True)
class OptionTarget:
    """按精确文案定位的可点击选项.

    Attributes:
        label: 选项文案(精确匹配)
        level: 类目层级, None 表示普通下拉选项
        scope: 优先的作用域
    """

    label: str
    level: int | None = None
    scope: str | None = field(default=None)

    @property
    def is_first_level(self) -> bool:
        return self.level == 0

    @property
    def effective_scope(self) -> str:
        if self.scope:
            return self.scope
        return TAXONOMY_SCOPE if self.level is not None else OPTION_SCOPE

    def describe(self) -> str:
        if self.level is None:
            return f"选项 '{self.label}'"
        return f"类目第 {self.level + 1} 级 '{self.label}'"


FIELD_SPECS: dict[FieldRole, FieldSpec] = {
    FieldRole.CATEGORY: FieldSpec(
        role=FieldRole.CATEGORY,
        description="类目选择",
        selectors=(
            '[data-testid="catalog-select-dropdown-input"]',
            '[data-testid="catalog-select"]',
            '[data-testid="category-select"]',
            "input#category",
        ),
        aria_role="combobox",
        texts=("Wähle eine Kategorie", "Kategorie", "Katalog", "Category"),
        labels=("Kategorie", "Category"),
        placeholders=("Wähle eine Kategorie", "Kategorie", "Katalog"),
    ),
    FieldRole.TITLE: FieldSpec(
        role=FieldRole.TITLE,
        description="标题",
        selectors=("input#title", 'input[name="title"]', '[data-testid="title--input"]'),
        aria_role="textbox",
        texts=("Titel", "Title"),
        labels=("Titel", "Title"),
        placeholders=("z.B. Weißes COS Jumper", "Titel"),
    ),
    FieldRole.DESCRIPTION: FieldSpec(
        role=FieldRole.DESCRIPTION,
        description="描述",
        selectors=(
            "textarea#description",
            'textarea[name="description"]',
            '[data-testid="description--input"]',
        ),
        aria_role="textbox",
        texts=("Beschreibe deinen Artikel", "Beschreibung", "Description"),
        labels=("Beschreibe deinen Artikel", "Beschreibung", "Description"),
        placeholders=("z.B. nur ein paar Mal getragen", "Beschreibung"),
    ),
    FieldRole.PRICE: FieldSpec(
        role=FieldRole.PRICE,
        description="价格",
        selectors=("input#price", 'input[name="price"]', '[data-testid="price-input--input"]'),
        aria_role="textbox",
        texts=("Preis", "Price"),
        labels=("Preis", "Price"),
        placeholders=("0,00 €", "Preis"),
    ),
    FieldRole.BRAND: FieldSpec(
        role=FieldRole.BRAND,
        description="品牌",
        selectors=(
            '[data-testid="brand-select-dropdown-input"]',
            '[data-testid="brand-select"]',
            "input#brand",
            'input[name="brand"]',
        ),
        aria_role="combobox",
        texts=("Marke", "Brand"),
        labels=("Marke", "Brand"),
        placeholders=("Marke", "Brand"),
    ),
    FieldRole.SIZE: FieldSpec(
        role=FieldRole.SIZE,
        description="尺码",
        selectors=('[data-testid="size-select-dropdown-input"]', '[data-testid="size-select"]'),
        aria_role="combobox",
        texts=("Größe", "Size"),
        labels=("Größe", "Size"),
        placeholders=("Größe", "Size"),
    ),
    FieldRole.CONDITION: FieldSpec(
        role=FieldRole.CONDITION,
        description="成色",
        selectors=(
            '[data-testid="condition-select-dropdown-input"]',
            '[data-testid="condition-select"]',
            '[data-testid="status-select"]',
        ),
        aria_role="combobox",
        texts=("Zustand", "Condition", "Status"),
        labels=("Zustand", "Condition"),
        placeholders=("Zustand", "Condition"),
    ),
    FieldRole.COLOR: FieldSpec(
        role=FieldRole.COLOR,
        description="颜色",
        selectors=('[data-testid="color-select-dropdown-input"]', '[data-testid="color-select"]'),
        aria_role="combobox",
        texts=("Farbe", "Color"),
        labels=("Farbe", "Color"),
        placeholders=("Farbe", "Color"),
    ),
    FieldRole.PHOTO_INPUT: FieldSpec(
        role=FieldRole.PHOTO_INPUT,
        description="图片上传控件",
        selectors=(
            '[data-testid="add-photos-input"]',
            'input[type="file"][accept*="image"]',
            'input[type="file"]',
        ),
        require_visible=False,
    ),
    FieldRole.SUBMIT: FieldSpec(
        role=FieldRole.SUBMIT,
        description="上传按钮",
        selectors=('[data-testid="upload-form-save-button"]', 'button[type="submit"]'),
        aria_role="button",
        texts=("Hochladen", "Upload", "Veröffentlichen"),
    ),
    FieldRole.UPLOAD_FORM: FieldSpec(
        role=FieldRole.UPLOAD_FORM,
        description="上传表单",
        selectors=(UPLOAD_FORM_SCOPE, "main form"),
        require_visible=False,
        scope=None,
    ),
}


def get_field_spec(role: FieldRole | str) -> FieldSpec:
    return FIELD_SPECS[FieldRole(role)]
