"""
@PURPOSE: Pytest 配置和通用 fixtures
@OUTLINE:
  - fast_locator: 不等待的元素定位器
  - scenario: 预置的 Vinted 场景
  - image_client_factory: 基于 httpx.MockTransport 的图片下载客户端工厂
  - listing / session: 端到端示例数据
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from tests.mocks.vinted_page import VintedScenario, build_upload_page
from vinted_auto_publish.browser.element_locator import ElementLocator
from vinted_auto_publish.models.listing import Listing, MarketplaceSession

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 256


@pytest.fixture
def fast_locator() -> ElementLocator:
    """每个策略只尝试一次、无间隔的定位器."""
    return ElementLocator(attempts=1, retry_delay_ms=0, action_timeout_ms=100)


@pytest.fixture
def scenario() -> VintedScenario:
    return build_upload_page()


def make_image_client_factory(
    failing: set[str] | None = None, empty: set[str] | None = None
) -> Callable[[], httpx.AsyncClient]:
    """failing 中的 URL 返回 404, empty 中的 URL 返回空内容, 其余返回 JPEG."""
    failing = failing or set()
    empty = empty or set()

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in failing:
            return httpx.Response(404, content=b"not found")
        if url in empty:
            return httpx.Response(200, content=b"")
        return httpx.Response(200, content=JPEG_BYTES, headers={"Content-Type": "image/jpeg"})

    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def image_client_factory() -> Callable[[], httpx.AsyncClient]:
    return make_image_client_factory()


@pytest.fixture
def listing() -> Listing:
    return Listing.model_validate(
        {
            "title": "Nike Hoodie XL",
            "description": "Worn twice, like new",
            "price": 25,
            "brand": "Nike",
            "category": "hoodie",
            "genderHint": "men",
            "size": "XL",
            "condition": "good",
            "color": "black",
            "imageUrls": ["https://x/img1.jpg"],
        }
    )


@pytest.fixture
def session() -> MarketplaceSession:
    return MarketplaceSession.model_validate(
        {
            "cookies": [
                {"name": "_vinted_fr_session", "value": "abc", "domain": ".vinted.de"},
                {
                    "name": "access_token_web",
                    "value": "tok",
                    "domain": ".vinted.de",
                    "sameSite": "none",
                },
                {"name": "anon_id", "value": "42", "domain": ".vinted.de", "expires": 1893456000},
            ],
            "identityString": "Mozilla/5.0 (Test) Chrome/120.0.0.0",
        }
    )
