"""CLI tests using click's runner against a temporary config home."""

import pytest
from click.testing import CliRunner

from planning_agent import cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, temp_dir):
    fake_home = temp_dir / ".planning-agent"
    monkeypatch.setattr("planning_agent.core.AGENT_HOME", fake_home)
    monkeypatch.setattr("planning_agent.core.AGENT_CONFIG_FILE", fake_home / "config.yaml")
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("PLANNING_AGENT_ENV", raising=False)
    monkeypatch.setattr("planning_agent.notifications.health._memory_percent", lambda: 10.0)
    monkeypatch.setattr("planning_agent.notifications.health._disk_percent", lambda: 10.0)
    return fake_home


def test_set_env_and_show(isolated_home):
    result = runner.invoke(cli.main, ["config", "set-env", "production"])
    assert result.exit_code == 0
    assert (isolated_home / "config.yaml").exists()

    result = runner.invoke(cli.main, ["config", "show"])
    assert result.exit_code == 0
    assert "environment: production" in result.output


def test_set_env_rejects_unknown():
    result = runner.invoke(cli.main, ["config", "set-env", "qa"])
    assert result.exit_code != 0


def test_set_webhook_is_masked_in_show():
    url = "https://hooks.slack.com/services/T000/B000/secretsecretsecret"
    assert runner.invoke(cli.main, ["config", "set-webhook", url]).exit_code == 0

    result = runner.invoke(cli.main, ["config", "show"])
    assert "secretsecretsecret" not in result.output


def test_notify_list_shows_routing():
    result = runner.invoke(cli.main, ["notify", "list"])
    assert result.exit_code == 0
    assert "#planning-ops" in result.output
    assert "console" in result.output


def test_notify_planning_to_console():
    result = runner.invoke(cli.main, [
        "notify", "planning", "Q1 Planning",
        "--epics", "1", "--features", "3", "--stories", "8",
        "--duration", "4.2", "--source", "PI Doc",
    ])
    assert result.exit_code == 0
    assert "Planning notification sent" in result.output


def test_notify_error_to_console():
    result = runner.invoke(cli.main, ["notify", "error", "Confluence 503", "--context", "sync"])
    assert result.exit_code == 0


def test_health_reports_status():
    result = runner.invoke(cli.main, ["health"])
    assert result.exit_code == 0
    assert "healthy" in result.output


def test_notify_test_all_categories():
    result = runner.invoke(cli.main, ["notify", "test"])
    assert result.exit_code == 0
    for category in ("planning", "sync", "health", "budget", "workflow", "agent", "errors"):
        assert category in result.output


def test_notify_test_single_category():
    result = runner.invoke(cli.main, ["notify", "test", "--category", "sync"])
    assert result.exit_code == 0
    assert "> sync" in result.output
    assert "> planning" not in result.output


def test_set_env_does_not_persist_env_webhook(isolated_home, monkeypatch):
    import yaml

    monkeypatch.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.com/services/SECRET")
    assert runner.invoke(cli.main, ["config", "set-env", "staging"]).exit_code == 0

    saved = yaml.safe_load((isolated_home / "config.yaml").read_text())
    assert saved["environment"] == "staging"
    assert saved["slack"]["webhook_url"] == ""


def test_set_webhook_does_not_persist_env_environment(isolated_home, monkeypatch):
    import yaml

    monkeypatch.setenv("PLANNING_AGENT_ENV", "production")
    url = "https://hooks.slack.com/services/T/B/X"
    assert runner.invoke(cli.main, ["config", "set-webhook", url]).exit_code == 0

    saved = yaml.safe_load((isolated_home / "config.yaml").read_text())
    assert saved["slack"]["webhook_url"] == url
    assert saved["environment"] == "development"
