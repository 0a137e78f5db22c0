"""
@PURPOSE: 发布工作流端到端测试(假页面 + 假浏览器会话)
@OUTLINE:
  - TestValidation: 前置校验, 不创建浏览器
  - TestHappyPath: 完整发布成功
  - TestFailures: 各类失败状态与诊断
"""

from __future__ import annotations

import pytest

from tests.conftest import make_image_client_factory
from tests.mocks.session_mock import RecordingFactory
from tests.mocks.vinted_page import SUCCESS_URL, build_upload_page
from vinted_auto_publish.browser.photo_ingestor import PhotoIngestor
from vinted_auto_publish.browser.taxonomy_navigator import TaxonomyNavigator
from vinted_auto_publish.config.settings import PublishConfig
from vinted_auto_publish.models.result import PublishStatus
from vinted_auto_publish.utils.page_waiter import WaitStrategy
from vinted_auto_publish.workflows.publish_workflow import PublishWorkflow, extract_listing_id


@pytest.fixture
def make_workflow(fast_locator):
    def _make(factory, *, client_factory=None, signal_timeout_ms=200, timeout_s=10.0, **kwargs):
        wait = WaitStrategy.immediate()
        return PublishWorkflow(
            browser_factory=factory,
            locator=fast_locator,
            navigator=TaxonomyNavigator(
                fast_locator,
                signal_timeout_ms=signal_timeout_ms,
                confirm_timeout_ms=100,
                wait_strategy=wait,
            ),
            photo_ingestor=PhotoIngestor(
                fast_locator,
                client_factory=client_factory or make_image_client_factory(),
                settle_timeout_ms=100,
                wait_strategy=wait,
            ),
            submit_timeout_ms=200,
            timeout_s=timeout_s,
            **kwargs,
        )

    return _make


class TestValidation:
    async def test_short_description_skips_browser(self, make_workflow, listing, session):
        factory = RecordingFactory(build_upload_page().page)
        listing = listing.model_copy(update={"description": "abc"})

        outcome = await make_workflow(factory).publish(listing, session)

        assert outcome.status == PublishStatus.SUBMISSION_REJECTED
        assert outcome.error_code == "DescriptionTooShort"
        assert outcome.failing_segment == "description"
        assert factory.calls == []

    async def test_short_title_rejected(self, make_workflow, listing, session):
        factory = RecordingFactory(build_upload_page().page)
        listing = listing.model_copy(update={"title": "  Hi  "})

        outcome = await make_workflow(factory).publish(listing, session)

        assert outcome.error_code == "TitleTooShort"
        assert factory.calls == []

    def test_thresholds_come_from_config(self, make_workflow, listing):
        workflow = make_workflow(
            RecordingFactory(build_upload_page().page),
            publish_config=PublishConfig(min_title_length=50),
        )
        assert workflow.validate(listing).code == "TitleTooShort"


class TestHappyPath:
    async def test_publish_success(self, make_workflow, listing, session):
        scenario = build_upload_page()
        factory = RecordingFactory(scenario.page)

        outcome = await make_workflow(factory).publish(listing, session)

        assert outcome.status == PublishStatus.SUCCESS, outcome.diagnostic
        assert outcome.final_url == SUCCESS_URL
        assert outcome.listing_id == "4711001234"
        assert outcome.resolved_category == "Herren → Kleidung → Pullis & Hoodies → Hoodies"
        assert outcome.photos.uploaded_count == 1
        assert outcome.snapshot is None
        assert outcome.warnings == []

    async def test_fields_filled_and_session_applied(self, make_workflow, listing, session):
        scenario = build_upload_page()
        factory = RecordingFactory(scenario.page)

        await make_workflow(factory).publish(listing, session)

        fields = scenario.fields
        assert fields["title"].value == "Nike Hoodie XL"
        assert fields["description"].value == "Worn twice, like new"
        assert fields["price"].value == "25"
        assert fields["brand"].value == "Nike"
        assert [text for text, _ in fields["title"].typed] == ["Nike Hoodie XL"]
        assert [text for text, _ in fields["description"].typed] == ["Worn twice, like new"]
        assert fields["price"].typed == []
        clicked = [el.text for el in scenario.page.clicked]
        for label in ("Nike", "XL", "Gut", "Schwarz", "Hochladen"):
            assert label in clicked
        assert "Nike ACG" not in clicked

        browser = factory.sessions[0]
        assert browser.closed
        assert browser.user_agent == session.identity_string
        assert [c["name"] for c in browser.applied_cookies] == [
            "_vinted_fr_session",
            "access_token_web",
            "anon_id",
        ]
        assert browser.applied_cookies[1]["sameSite"] == "None"

    async def test_missing_optional_value_is_warning(self, make_workflow, listing, session):
        factory = RecordingFactory(build_upload_page().page)
        listing = listing.model_copy(update={"size": "XXS"})

        outcome = await make_workflow(factory).publish(listing, session)

        assert outcome.success
        assert any("XXS" in warning for warning in outcome.warnings)

    async def test_catalog_redirect_gets_placeholder_id(self, make_workflow, listing, session):
        scenario = build_upload_page(success_url="https://www.vinted.de/catalog?sent=1")

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.success
        assert outcome.listing_id.startswith("catalog-")


class TestFailures:
    async def test_not_logged_in_is_wrong_page(self, make_workflow, listing, session):
        scenario = build_upload_page(logged_in=False)
        factory = RecordingFactory(scenario.page)

        outcome = await make_workflow(factory).publish(listing, session)

        assert outcome.status == PublishStatus.NAVIGATION_INTEGRITY_VIOLATION
        assert outcome.error_code == "WrongPage"
        assert "/member/login" in outcome.final_url
        assert outcome.snapshot is not None
        assert factory.sessions[0].closed

    async def test_submit_disabled(self, make_workflow, listing, session):
        scenario = build_upload_page(submit_enabled=False)

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.status == PublishStatus.SUBMISSION_REJECTED
        assert outcome.error_code == "SubmitDisabled"
        assert scenario.fields["submit"].clicks == 0

    async def test_all_photos_failed(self, make_workflow, listing, session):
        scenario = build_upload_page()
        client_factory = make_image_client_factory(failing=set(listing.image_urls))

        outcome = await make_workflow(
            RecordingFactory(scenario.page), client_factory=client_factory
        ).publish(listing, session)

        assert outcome.status == PublishStatus.PHOTO_INGESTION_FAILED
        assert outcome.photos.failures[0].stage == "download"
        assert scenario.fields["submit"].clicks == 0

    async def test_partial_photo_failure_is_warning(self, make_workflow, listing, session):
        listing = listing.model_copy(
            update={"image_urls": ["https://x/img1.jpg", "https://x/img2.jpg"]}
        )
        client_factory = make_image_client_factory(failing={"https://x/img2.jpg"})

        outcome = await make_workflow(
            RecordingFactory(build_upload_page().page), client_factory=client_factory
        ).publish(listing, session)

        assert outcome.success
        assert outcome.photos.uploaded_count == 1
        assert any("图片" in warning for warning in outcome.warnings)

    async def test_category_redirect_reports_level(self, make_workflow, listing, session):
        scenario = build_upload_page(drift_at_level=2)

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.status == PublishStatus.NAVIGATION_INTEGRITY_VIOLATION
        assert outcome.failing_level == 2
        assert outcome.failing_segment == "Pullis & Hoodies"
        assert outcome.resolved_category.endswith("→ Hoodies")

    async def test_category_not_confirmed(self, make_workflow, listing, session):
        scenario = build_upload_page(emit_signal=False, show_brand_field=False)

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.status == PublishStatus.FIELD_RESOLUTION_FAILED
        assert outcome.error_code == "CategoryNotConfirmed"

    async def test_missing_required_field(self, make_workflow, listing, session):
        scenario = build_upload_page()
        scenario.page.remove(scenario.fields["price"])

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.status == PublishStatus.FIELD_RESOLUTION_FAILED
        assert outcome.failing_segment == "price"
        assert outcome.attempted_strategies[0] == "attribute:input#price"

    async def test_submit_without_redirect_times_out(self, make_workflow, listing, session):
        scenario = build_upload_page()
        scenario.fields["submit"].on_click = None

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.status == PublishStatus.TIMEOUT
        assert outcome.error_code == "SubmitTimeout"

    async def test_overall_timeout(self, make_workflow, listing, session):
        scenario = build_upload_page(emit_signal=False)
        factory = RecordingFactory(scenario.page)

        outcome = await make_workflow(factory, signal_timeout_ms=5000, timeout_s=0.2).publish(
            listing, session
        )

        assert outcome.status == PublishStatus.TIMEOUT
        assert outcome.error_code == "PublishTimeout"
        assert factory.sessions[0].closed

    async def test_snapshot_failure_does_not_mask_error(self, make_workflow, listing, session):
        scenario = build_upload_page(submit_enabled=False)
        scenario.page.screenshot_error = RuntimeError("no display")

        outcome = await make_workflow(RecordingFactory(scenario.page)).publish(listing, session)

        assert outcome.error_code == "SubmitDisabled"
        assert outcome.snapshot is None


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.vinted.de/items/4711001234-nike-hoodie", "4711001234"),
        ("https://www.vinted.de/items/42?referrer=upload", "42"),
    ],
)
def test_extract_listing_id(url, expected):
    assert extract_listing_id(url) == expected


def test_extract_listing_id_placeholder():
    assert extract_listing_id("https://www.vinted.de/member/123").startswith("catalog-")
