"""
@PURPOSE: 预置的 Vinted 页面场景 - 首页(Cookie 横幅/用户菜单) + 发布页(表单/类目/下拉/图片/提交)
@OUTLINE:
  - VintedScenario: 场景与关键元素句柄
  - build_upload_page(): 构造场景
@DEPENDENCIES:
  - 内部: vinted_auto_publish.browser.targets, tests.mocks.browser_mock
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from vinted_auto_publish.browser.targets import (
    ANY_LEVEL_OPTION_SELECTOR,
    FIRST_LEVEL_OPTION_SELECTOR,
    OPTION_SCOPE,
    TAXONOMY_SCOPE,
    UPLOAD_FORM_SCOPE,
)

from .browser_mock import FakeElement, FakePage

BASE_URL = "https://www.vinted.de"
NEW_ITEM_URL = f"{BASE_URL}/items/new"
LOGIN_URL = f"{BASE_URL}/member/login?ref_url=%2Fitems%2Fnew"
BRAND_SIGNAL_URL = f"{BASE_URL}/api/v2/item_upload/brands?category_id=1812"
SUCCESS_URL = f"{BASE_URL}/items/4711001234-nike-hoodie"
HOODIE_PATH = ("Herren", "Kleidung", "Pullis & Hoodies", "Hoodies")


@dataclass
class VintedScenario:
    page: FakePage
    options: list[FakeElement] = field(default_factory=list)
    fields: dict[str, FakeElement] = field(default_factory=dict)
    thumbnails: list[FakeElement] = field(default_factory=list)


def form_input(*selectors: str, **kwargs) -> FakeElement:
    kwargs.setdefault("tag", "INPUT")
    kwargs.setdefault("editable", True)
    return FakeElement(selectors=set(selectors), scopes={UPLOAD_FORM_SCOPE}, **kwargs)


def dropdown_option(text: str) -> FakeElement:
    return FakeElement(text=text, role="option", tag="LI", scopes={OPTION_SCOPE})


def build_upload_page(
    path: Sequence[str] = HOODIE_PATH,
    *,
    logged_in: bool = True,
    emit_signal: bool = True,
    show_brand_field: bool = True,
    drift_at_level: int | None = None,
    submit_enabled: bool = True,
    success_url: str = SUCCESS_URL,
    url: str = "about:blank",
) -> VintedScenario:
    """构造一个完整的 Vinted 场景.

    Args:
        path: 类目选项路径
        logged_in: False 时发布页重定向到登录页
        emit_signal: 最后一级点击后是否发出品牌接口响应
        show_brand_field: 最后一级点击后品牌字段是否出现
        drift_at_level: 点击该层级后页面跳转离开发布页
        submit_enabled: 提交按钮是否可用
        success_url: 提交后跳转的 URL
        url: 初始 URL
    """
    page = FakePage(url=url)
    scenario = VintedScenario(page=page)

    banner = FakeElement(text="Alle akzeptieren", role="button", tag="BUTTON")
    banner.on_click = lambda p: p.remove(banner)
    page.add(banner)

    if logged_in:
        page.add(FakeElement(selectors={'[data-testid="user-menu"]'}, tag="BUTTON"))
    else:
        page.redirects[NEW_ITEM_URL] = LOGIN_URL

    # 页头导航链接, 文案与第一级类目相同
    page.add(FakeElement(text=path[0], role="link", tag="A"))
    page.add(FakeElement(selectors={UPLOAD_FORM_SCOPE}, tag="FORM"))

    scenario.fields["title"] = page.add(form_input("input#title"))
    scenario.fields["description"] = page.add(form_input("textarea#description", tag="TEXTAREA"))
    scenario.fields["price"] = page.add(form_input("input#price"))
    scenario.fields["category"] = page.add(
        form_input(
            '[data-testid="catalog-select-dropdown-input"]',
            role="combobox",
            name="Kategorie",
            editable=False,
        )
    )

    brand_field = form_input(
        '[data-testid="brand-select-dropdown-input"]', role="combobox", name="Marke"
    )
    scenario.fields["brand"] = brand_field

    for level, segment in enumerate(path):
        selectors = {ANY_LEVEL_OPTION_SELECTOR}
        if level == 0:
            selectors.add(FIRST_LEVEL_OPTION_SELECTOR)
        option = FakeElement(
            text=segment,
            selectors=selectors,
            role="button",
            tag="DIV",
            scopes={TAXONOMY_SCOPE},
        )

        def on_click(p: FakePage, level: int = level) -> None:
            if drift_at_level == level:
                p.url = f"{BASE_URL}/catalog/2050-herren"
                return
            if level == len(path) - 1:
                if emit_signal:
                    p.emit_response(BRAND_SIGNAL_URL)
                if show_brand_field:
                    p.add(brand_field)

        option.on_click = on_click
        scenario.options.append(page.add(option))

    for testid, role_name, values in (
        ("size", "Größe", ("M", "L", "XL")),
        ("condition", "Zustand", ("Neu mit Etikett", "Sehr gut", "Gut")),
        ("color", "Farbe", ("Schwarz", "Weiß", "Blau")),
    ):
        scenario.fields[testid] = page.add(
            form_input(
                f'[data-testid="{testid}-select-dropdown-input"]',
                role="combobox",
                name=role_name,
                editable=False,
            )
        )
        for value in values:
            page.add(dropdown_option(value))
    page.add(dropdown_option("Nike"), dropdown_option("Nike ACG"))

    def on_files(p: FakePage, files) -> None:
        thumbnail = FakeElement(selectors={'[data-testid^="photo-thumbnail"]'}, tag="IMG")
        scenario.thumbnails.append(p.add(thumbnail))

    scenario.fields["photo_input"] = page.add(
        form_input('[data-testid="add-photos-input"]', visible=False, on_files=on_files)
    )

    submit = FakeElement(
        text="Hochladen",
        selectors={'[data-testid="upload-form-save-button"]'},
        role="button",
        tag="BUTTON",
        enabled=submit_enabled,
        scopes={UPLOAD_FORM_SCOPE},
    )

    def on_submit(p: FakePage) -> None:
        p.url = success_url

    submit.on_click = on_submit
    scenario.fields["submit"] = page.add(submit)
    return scenario
