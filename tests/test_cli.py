"""
@PURPOSE: CLI 命令测试(typer CliRunner), 发布流程使用替身
"""

from __future__ import annotations

import base64
import json

import pytest
from typer.testing import CliRunner

import vinted_auto_publish.cli.commands.publish as publish_command
import vinted_auto_publish.cli.main as cli_main
from vinted_auto_publish import __version__
from vinted_auto_publish.config.settings import settings
from vinted_auto_publish.models.result import PublishOutcome, PublishStatus

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logger(monkeypatch):
    monkeypatch.setattr(cli_main, "setup_logger", lambda *args, **kwargs: None)


@pytest.fixture
def input_files(tmp_path, listing, session):
    listing_file = tmp_path / "listing.json"
    listing_file.write_text(listing.model_dump_json(), encoding="utf-8")
    session_file = tmp_path / "session.json"
    session_file.write_text(
        json.dumps({"cookies": session.cookie_dicts(), "identityString": "Agent/1.0"}),
        encoding="utf-8",
    )
    return listing_file, session_file


def stub_workflow(monkeypatch, outcome: PublishOutcome) -> list[dict]:
    calls: list[dict] = []

    class StubWorkflow:
        def __init__(self, **kwargs) -> None:
            self.kwargs = kwargs

        async def publish(self, listing, session):
            calls.append({"listing": listing, "session": session, "kwargs": self.kwargs})
            return outcome

    monkeypatch.setattr(publish_command, "PublishWorkflow", StubWorkflow)
    return calls


def test_version():
    result = runner.invoke(cli_main.app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_category_list_by_gender_alias():
    result = runner.invoke(cli_main.app, ["category", "list", "--branch", "men"])
    assert result.exit_code == 0
    assert "Herren → Accessoires → Uhren" in result.stdout
    assert "Damen → Kleidung → Sonstiges" not in result.stdout


def test_category_list_unknown_branch():
    result = runner.invoke(cli_main.app, ["category", "list", "-b", "Haustiere"])
    assert result.exit_code == 1
    assert "Damen" in result.stdout


def test_category_resolve():
    result = runner.invoke(cli_main.app, ["category", "resolve", "hoodie", "-g", "men", "-n", "2"])
    assert result.exit_code == 0
    assert "Herren → Kleidung → Pullis & Hoodies → Hoodies" in result.stdout


@pytest.mark.parametrize("fmt", ["yaml", "json"])
def test_config_show(fmt):
    result = runner.invoke(cli_main.app, ["config", "show", "--format", fmt])
    assert result.exit_code == 0
    assert "marketplace" in result.stdout


def test_config_show_rejects_unknown_format():
    result = runner.invoke(cli_main.app, ["config", "show", "-f", "xml"])
    assert result.exit_code == 1


def test_publish_run_success(monkeypatch, input_files):
    listing_file, session_file = input_files
    calls = stub_workflow(
        monkeypatch,
        PublishOutcome(
            status=PublishStatus.SUCCESS,
            final_url="https://www.vinted.de/items/4711001234-nike-hoodie",
            listing_id="4711001234",
        ),
    )

    result = runner.invoke(cli_main.app, ["publish", "run", str(listing_file), str(session_file)])

    assert result.exit_code == 0
    assert "4711001234" in result.stdout
    assert calls[0]["listing"].title == "Nike Hoodie XL"
    assert calls[0]["session"].identity_string == "Agent/1.0"
    browser = calls[0]["kwargs"]["browser_factory"](calls[0]["session"])
    assert browser.user_agent == "Agent/1.0"


def test_publish_run_failure_saves_snapshot(monkeypatch, input_files, tmp_path):
    listing_file, session_file = input_files
    monkeypatch.setattr(settings, "data_debug_dir", str(tmp_path / "debug"))
    stub_workflow(
        monkeypatch,
        PublishOutcome(
            status=PublishStatus.SUBMISSION_REJECTED,
            attempt_id="deadbeef",
            error_code="SubmitDisabled",
            snapshot=base64.b64encode(b"\x89PNG").decode("ascii"),
        ),
    )

    result = runner.invoke(
        cli_main.app,
        ["publish", "run", str(listing_file), str(session_file), "--save-snapshot"],
    )

    assert result.exit_code == 1
    assert "SubmitDisabled" in result.stdout
    saved = list((tmp_path / "debug").glob("failure_deadbeef_*.png"))
    assert len(saved) == 1
    assert saved[0].read_bytes() == b"\x89PNG"


def test_publish_run_missing_file(tmp_path):
    missing = tmp_path / "missing.json"
    result = runner.invoke(cli_main.app, ["publish", "run", str(missing), str(missing)])
    assert result.exit_code == 2


def test_publish_run_invalid_listing(tmp_path, input_files):
    _, session_file = input_files
    bad_listing = tmp_path / "bad.json"
    bad_listing.write_text(json.dumps({"title": "Hoodie"}), encoding="utf-8")

    result = runner.invoke(cli_main.app, ["publish", "run", str(bad_listing), str(session_file)])

    assert result.exit_code == 2


def test_publish_login_requires_credentials(monkeypatch):
    monkeypatch.setattr(settings, "vinted_email", "")
    result = runner.invoke(cli_main.app, ["publish", "login"])
    assert result.exit_code == 2
