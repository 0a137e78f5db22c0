"""
@PURPOSE: 测试元素定位器的策略链、链接安全、作用域偏好与操作失败回退
@OUTLINE:
  - TestLinkSafety: 绝不选中链接
  - TestStrategyChain: 策略顺序与 NotFound 诊断
  - TestActions: 点击/填写/注入文件
"""

from __future__ import annotations

import pytest

from tests.mocks.browser_mock import FakeElement, FakePage
from vinted_auto_publish.browser.element_locator import ElementLocator, NotFound
from vinted_auto_publish.browser.strategies import build_field_strategies, build_option_strategies
from vinted_auto_publish.browser.targets import (
    FIRST_LEVEL_OPTION_SELECTOR,
    OPTION_SCOPE,
    FieldRole,
    OptionTarget,
    get_field_spec,
)
from vinted_auto_publish.config.settings import settings
from vinted_auto_publish.errors import FieldResolutionError


class TestLinkSafety:
    """页头导航链接与类目选项文案相同."""

    async def test_link_with_same_text_is_skipped(self, fast_locator):
        page = FakePage()
        link = page.add(FakeElement(text="Herren", role="link", tag="A"))
        option = page.add(FakeElement(text="Herren", role="button"))

        result = await fast_locator.click(page, OptionTarget("Herren", level=0))

        assert result.found
        assert result.strategy == "text-exact:Herren"
        assert link.clicks == 0
        assert option.clicks == 1

    async def test_link_descendant_is_skipped(self, fast_locator):
        page = FakePage()
        inner = page.add(FakeElement(text="Damen", tag="SPAN", link_ancestor=True))

        result = await fast_locator.click(page, OptionTarget("Damen", level=0))

        assert isinstance(result, NotFound)
        assert inner.clicks == 0

    async def test_only_links_reports_every_strategy(self, fast_locator):
        page = FakePage()
        link = page.add(FakeElement(text="Kinder", role="link", tag="A"))
        target = OptionTarget("Kinder", level=0)

        result = await fast_locator.click(page, target)

        assert not result.found
        assert result.attempted_strategies == [s.name for s in build_option_strategies(target)]
        assert link.clicks == 0


class TestStrategyChain:
    async def test_first_level_selector_comes_first(self, fast_locator):
        page = FakePage()
        page.add(FakeElement(text="Damen", role="button"))
        first = page.add(FakeElement(text="Damen", selectors={FIRST_LEVEL_OPTION_SELECTOR}))

        result = await fast_locator.click(page, OptionTarget("Damen", level=0))

        assert result.strategy == f"attribute:{FIRST_LEVEL_OPTION_SELECTOR}"
        assert result.attempted_strategies == [result.strategy]
        assert first.clicks == 1

    async def test_attribute_text_must_match_exactly(self, fast_locator):
        page = FakePage()
        page.add(FakeElement(text="Pullis & Hoodies", selectors={FIRST_LEVEL_OPTION_SELECTOR}))
        hoodies = page.add(FakeElement(text="Hoodies", role="button"))

        result = await fast_locator.click(page, OptionTarget("Hoodies", level=0))

        assert result.found
        assert hoodies.clicks == 1

    async def test_field_falls_back_to_placeholder(self, fast_locator):
        page = FakePage()
        title = page.add(FakeElement(placeholder="Titel", tag="INPUT", editable=True))

        result = await fast_locator.fill(page, FieldRole.TITLE, "Nike Hoodie XL")

        assert result.strategy == "placeholder:Titel"
        spec = get_field_spec(FieldRole.TITLE)
        names = [s.name for s in build_field_strategies(spec)]
        assert result.attempted_strategies == names[: names.index("placeholder:Titel") + 1]
        assert title.value == "Nike Hoodie XL"

    async def test_scoped_candidate_preferred(self, fast_locator):
        page = FakePage()
        outside = page.add(FakeElement(text="Nike", role="option"))
        inside = page.add(FakeElement(text="Nike", role="option", scopes={OPTION_SCOPE}))

        result = await fast_locator.click(page, OptionTarget("Nike"))

        assert result.in_scope
        assert inside.clicks == 1
        assert outside.clicks == 0

    async def test_invisible_option_not_found(self, fast_locator):
        page = FakePage()
        hidden = page.add(FakeElement(text="Gut", role="option", visible=False))

        result = await fast_locator.click(page, OptionTarget("Gut"), quiet=True)

        assert not result.found
        assert hidden.clicks == 0

    async def test_retries_each_strategy(self):
        page = FakePage()
        locator = ElementLocator(attempts=3, retry_delay_ms=0, action_timeout_ms=100)

        result = await locator.locate(page, OptionTarget("XL"))

        assert not result.found
        # 每个策略都重试, 但诊断中只记一次
        assert len(result.attempted_strategies) == len(set(result.attempted_strategies))
        assert page.query_count > len(result.attempted_strategies)

    def test_require_raises_field_resolution_error(self, fast_locator):
        missing = NotFound(target="标题", attempted_strategies=["attribute:input#title"])
        with pytest.raises(FieldResolutionError) as exc_info:
            fast_locator.require(missing, "title")
        assert exc_info.value.segment == "title"
        assert exc_info.value.attempted_strategies == ["attribute:input#title"]


class TestActions:
    async def test_failed_action_moves_to_next_candidate(self, fast_locator):
        page = FakePage()
        disabled = page.add(FakeElement(text="Gut", role="option", enabled=False))
        enabled = page.add(FakeElement(text="Gut", role="option"))

        result = await fast_locator.click(page, OptionTarget("Gut"))

        assert result.found
        assert disabled.clicks == 0
        assert enabled.clicks == 1

    async def test_hidden_file_input_accepted(self, fast_locator):
        page = FakePage()
        file_input = page.add(
            FakeElement(
                selectors={'[data-testid="add-photos-input"]'},
                tag="INPUT",
                visible=False,
                editable=True,
            )
        )

        result = await fast_locator.set_files(page, FieldRole.PHOTO_INPUT, "/tmp/photo_00.jpg")

        assert result.found
        assert file_input.files == ["/tmp/photo_00.jpg"]

    async def test_fill_non_editable_is_not_found(self, fast_locator):
        page = FakePage()
        page.add(FakeElement(selectors={"input#price"}, tag="DIV"))

        result = await fast_locator.fill(page, FieldRole.PRICE, "25", quiet=True)

        assert not result.found

    async def test_string_target_resolves_field_role(self, fast_locator):
        page = FakePage()
        price = page.add(FakeElement(selectors={"input#price"}, tag="INPUT", editable=True))

        result = await fast_locator.fill(page, "price", "25")

        assert result.found
        assert price.value == "25"


class TestTyping:
    async def test_type_text_replaces_value_with_bounded_delay(self):
        locator = ElementLocator(
            attempts=1, retry_delay_ms=0, action_timeout_ms=100, typing_delay_ms=(20, 40)
        )
        page = FakePage()
        title = page.add(FakeElement(placeholder="Titel", tag="INPUT", editable=True))
        title.value = "alt"

        result = await locator.type_text(page, FieldRole.TITLE, "Nike Hoodie XL")

        assert result.found
        assert title.value == "Nike Hoodie XL"
        [(text, delay)] = title.typed
        assert text == "Nike Hoodie XL"
        assert 20 <= delay <= 40

    async def test_long_text_is_filled_directly(self):
        locator = ElementLocator(
            attempts=1, retry_delay_ms=0, action_timeout_ms=100, typing_max_chars=10
        )
        page = FakePage()
        description = page.add(
            FakeElement(placeholder="Beschreibung", tag="TEXTAREA", editable=True)
        )

        result = await locator.type_text(page, FieldRole.DESCRIPTION, "x" * 11)

        assert result.found
        assert description.value == "x" * 11
        assert description.typed == []

    def test_keystroke_delay_defaults_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings.timing, "typing_delay_min_ms", 7)
        monkeypatch.setattr(settings.timing, "typing_delay_max_ms", 7)
        assert ElementLocator().keystroke_delay() == 7
