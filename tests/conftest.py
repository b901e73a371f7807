"""
Pytest configuration and fixtures for chatbridge tests.
"""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from chatbridge.audit import reset_audit_logger
from chatbridge.channels.models import InboundMessage
from chatbridge.config import clear_config_cache


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def chatbridge_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point CHATBRIDGE_HOME at a temp dir and reset process-wide caches."""
    home = temp_dir / ".chatbridge"
    home.mkdir()

    for key in [k for k in os.environ if k.startswith("CHATBRIDGE_")]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CHATBRIDGE_HOME", str(home))
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    monkeypatch.delenv("SLACK_APP_TOKEN", raising=False)

    clear_config_cache()
    reset_audit_logger()
    yield home
    clear_config_cache()
    reset_audit_logger()


@pytest.fixture
def sample_message() -> InboundMessage:
    """Provide a normalized Slack message."""
    return InboundMessage(
        id="1700000000.000100",
        chat_jid="slack:C12345",
        sender="U111",
        sender_name="Alice",
        content="Hello there",
        timestamp="2023-11-14T22:13:20.000Z",
    )


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration dictionary."""
    return {
        "general": {
            "assistant_name": "Molty",
        },
        "channels": {
            "slack": {
                "enable": True,
                "bot_token": "xoxb-test",
                "app_token": "xapp-test",
                "sync_limit": 50,
            },
        },
        "groups": {
            "slack:C12345": {"folder": "main", "name": "Main"},
        },
    }
