"""
@PURPOSE: 类目关键词表、性别映射与字段取值映射(成色/颜色)
@OUTLINE:
  - CATEGORY_KEYWORDS: 关键词 -> 类目术语(有序, 首个命中生效)
  - GENDER_BRANCHES: 性别提示 -> 主分支
  - CONDITION_LABELS: 规范成色 -> Vinted 显示文案
  - COLOR_LABELS: 英文颜色 -> Vinted 显示文案
  - def resolve_gender(): 性别提示归一化
  - def match_keyword(): 按顺序查找首个命中的关键词
  - def map_condition(): 成色映射
  - def map_color(): 颜色映射
@GOTCHAS:
  - CATEGORY_KEYWORDS 的顺序有意义: 'sweatshirt'/'t-shirt'/'polo' 必须排在 'shirt' 之前
  - 未知的成色/颜色原样透传, 由页面定位决定是否可选
@RELATED: resolver.py, workflows/publish_workflow.py
"""

from __future__ import annotations

import re

# 顺序扫描, 子串包含即命中
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("sweatshirt", ("sweatshirts",)),
    ("t-shirt", ("t-shirts", "tops & t-shirts")),
    ("polo", ("poloshirts",)),
    ("shirt", ("t-shirts", "tops & t-shirts")),
    ("blouse", ("blusen",)),
    ("top", ("tops & t-shirts",)),
    ("sweater", ("pullover", "sweater")),
    ("hoodie", ("hoodies", "pullis & hoodies")),
    ("pullover", ("pullover",)),
    ("cardigan", ("strickjacken",)),
    ("jacket", ("jacken",)),
    ("coat", ("mäntel",)),
    ("blazer", ("blazer",)),
    ("suit", ("anzüge",)),
    ("jeans", ("jeans",)),
    ("pants", ("hosen",)),
    ("trousers", ("hosen",)),
    ("leggings", ("leggings",)),
    ("shorts", ("shorts",)),
    ("dress", ("kleider",)),
    ("skirt", ("röcke",)),
    ("sneaker", ("sneakers",)),
    ("boot", ("stiefel",)),
    ("sandal", ("sandalen",)),
    ("shoe", ("schuhe",)),
    ("backpack", ("rucksäcke",)),
    ("handbag", ("handtaschen",)),
    ("bag", ("taschen",)),
    ("belt", ("gürtel",)),
    ("scarf", ("schals & tücher",)),
    ("beanie", ("mützen & hüte",)),
    ("hat", ("mützen & hüte",)),
    ("watch", ("uhren",)),
)

GENDER_BRANCHES: dict[str, str] = {
    "women": "Damen",
    "woman": "Damen",
    "female": "Damen",
    "damen": "Damen",
    "men": "Herren",
    "man": "Herren",
    "male": "Herren",
    "herren": "Herren",
    "kids": "Kinder",
    "kid": "Kinder",
    "children": "Kinder",
    "child": "Kinder",
    "kinder": "Kinder",
}

CONDITION_LABELS: dict[str, str] = {
    "new_with_tags": "Neu mit Etikett",
    "new": "Neu ohne Etikett",
    "new_without_tags": "Neu ohne Etikett",
    "very_good": "Sehr gut",
    "like_new": "Sehr gut",
    "good": "Gut",
    "satisfactory": "Zufriedenstellend",
    "fair": "Zufriedenstellend",
}

COLOR_LABELS: dict[str, str] = {
    "black": "Schwarz",
    "white": "Weiß",
    "grey": "Grau",
    "gray": "Grau",
    "blue": "Blau",
    "navy": "Dunkelblau",
    "light_blue": "Hellblau",
    "red": "Rot",
    "green": "Grün",
    "yellow": "Gelb",
    "orange": "Orange",
    "pink": "Rosa",
    "purple": "Lila",
    "brown": "Braun",
    "beige": "Beige",
    "cream": "Creme",
    "khaki": "Khaki",
    "gold": "Gold",
    "silver": "Silber",
    "multicolor": "Mehrfarbig",
    "multi": "Mehrfarbig",
}

_KEY_SEPARATORS = re.compile(r"[\s\-]+")


def _normalize_key(value: str) -> str:
    return _KEY_SEPARATORS.sub("_", value.strip().lower())


def resolve_gender(hint: str | None) -> str | None:
    """将性别提示归一化为主分支标签, 无法识别时返回 None(不限制分支)."""
    if not hint:
        return None
    return GENDER_BRANCHES.get(hint.strip().lower())


def match_keyword(normalized_text: str) -> tuple[str, tuple[str, ...]] | None:
    """按固定顺序返回首个被包含的关键词及其类目术语."""
    for keyword, terms in CATEGORY_KEYWORDS:
        if keyword in normalized_text:
            return keyword, terms
    return None


def map_condition(value: str) -> str:
    """规范成色 -> 显示文案; 未知值原样返回.

    Examples:
        >>> map_condition("Very Good")
        'Sehr gut'
        >>> map_condition("Neu mit Etikett")
        'Neu mit Etikett'
    """
    return CONDITION_LABELS.get(_normalize_key(value), value)


def map_color(value: str) -> str:
    """英文颜色 -> 显示文案; 未知值原样返回."""
    return COLOR_LABELS.get(_normalize_key(value), value)
