"""
Tests for the rami CLI.
"""

import pytest
from typer.testing import CliRunner

from rami import sessions
from rami.main import app
from onboarding.drafts import MemoryDraftStore

runner = CliRunner()


@pytest.fixture
def store(monkeypatch):
    store = MemoryDraftStore()
    monkeypatch.setattr(sessions, "_memory_store", store)
    return store


class TestCommands:

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "2.0.0" in result.output

    def test_health(self):
        result = runner.invoke(app, ["health"])
        assert result.exit_code == 0
        assert "Draft backend: memory" in result.output


class TestDraftCommands:

    def test_show_missing(self, store):
        result = runner.invoke(app, ["draft", "show", "--user", "u1"])
        assert result.exit_code == 0
        assert "No draft" in result.output

    def test_show_and_clear(self, store):
        store.set("rami_wizard_v2_u1", {"crop": "Kale"})

        result = runner.invoke(app, ["draft", "show", "--user", "u1"])
        assert "Kale" in result.output

        result = runner.invoke(app, ["draft", "clear", "--user", "u1"])
        assert result.exit_code == 0
        assert "rami_wizard_v2_u1" not in store


class TestWizardCommand:

    def test_quit_keeps_draft(self, store):
        result = runner.invoke(app, ["wizard", "--user", "u1"], input="600\n1\nArugula\nquit\n")
        assert result.exit_code == 0
        assert "Draft saved" in result.output
        assert store.get("rami_wizard_v2_u1")["crop"] == "Arugula"

    def test_rejected_step_shows_error(self, store):
        result = runner.invoke(app, ["wizard", "--user", "u2"], input="0\n1\nquit\n")
        assert "Enter a number greater than 0." in result.output
