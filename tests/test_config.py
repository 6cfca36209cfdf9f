"""Tests for multitool.core.config: Configuration management."""

import pytest

from multitool.core.config import (
    BraveConfig,
    GDriveConfig,
    KibelaConfig,
    MultiToolConfig,
    ServerConfig,
    SlackConfig,
    VaultConfig,
    get_config,
    set_config,
)

_ENV_KEYS = (
    "OBSIDIAN_VAULT_PATH",
    "BRAVE_API_KEY",
    "BRAVE_MONTHLY_BUDGET",
    "BRAVE_ENFORCE_PER_SECOND",
    "BRAVE_MONTHLY_ROLLOVER",
    "BRAVE_PACING_DELAY_MS",
    "KIBELA_TEAM_NAME",
    "KIBELA_ACCESS_TOKEN",
    "GDRIVE_CREDENTIALS_PATH",
    "GDRIVE_OAUTH_PATH",
    "SLACK_BOT_TOKEN",
    "SLACK_TEAM_ID",
    "MULTITOOL_LOG_FILE",
    "MULTITOOL_LOG_LEVEL",
    "MULTITOOL_VIEW_CACHE_SIZE",
    "MULTITOOL_HTTP_TIMEOUT_SEC",
    "MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC",
    "MULTITOOL_MCP_TOOL_RESPONSE_MAX_CHARS",
    "MULTITOOL_MCP_BACKGROUND_TOOLS_CALL",
    "MULTITOOL_MCP_DISPATCH_MAX_WORKERS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GDRIVE_CREDENTIALS_PATH", str(tmp_path / "missing-creds.json"))
    set_config(None)
    yield
    set_config(None)


class TestMultiToolConfigDefaults:
    def test_from_env_defaults(self):
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.vault.path == ""
        assert config.vault.view_cache_size == 128
        assert config.brave.per_month_budget == 15000
        assert config.brave.enforce_per_second is False
        assert config.brave.monthly_rollover is True
        assert config.server.tool_call_timeout_sec == 110.0
        assert config.server.tool_response_max_chars == 32768
        assert config.server.background_tools_call is False

    def test_no_adapter_configured_by_default(self):
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.adapter_status() == {
            "obsidian": False,
            "brave": False,
            "kibela": False,
            "gdrive": False,
            "slack": False,
        }
        warnings = config.startup_warnings()
        assert len(warnings) == 5
        assert any("multitool gdrive-auth" in w for w in warnings)

    def test_all_adapters_configured(self, monkeypatch, tmp_path):
        creds = tmp_path / "creds.json"
        creds.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("OBSIDIAN_VAULT_PATH", str(tmp_path))
        monkeypatch.setenv("BRAVE_API_KEY", "brave-key")
        monkeypatch.setenv("KIBELA_TEAM_NAME", "acme")
        monkeypatch.setenv("KIBELA_ACCESS_TOKEN", "secret/token")
        monkeypatch.setenv("GDRIVE_CREDENTIALS_PATH", str(creds))
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        monkeypatch.setenv("SLACK_TEAM_ID", "T1")

        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert all(config.adapter_status().values())
        assert config.startup_warnings() == []
        assert config.kibela.endpoint == "https://acme.kibe.la/api/v1"

    def test_vault_path_that_is_not_a_directory_warns(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OBSIDIAN_VAULT_PATH", str(tmp_path / "nope"))
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.vault.configured
        assert "OBSIDIAN_VAULT_PATH does not point to a directory" in config.startup_warnings()


class TestEnvParsing:
    def test_numeric_overrides(self, monkeypatch):
        monkeypatch.setenv("BRAVE_MONTHLY_BUDGET", "2000")
        monkeypatch.setenv("MULTITOOL_VIEW_CACHE_SIZE", "0")
        monkeypatch.setenv("MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC", "30")
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.brave.per_month_budget == 2000
        assert config.vault.view_cache_size == 0
        assert config.server.tool_call_timeout_sec == 30.0

    def test_invalid_numbers_fall_back_to_defaults(self, monkeypatch, caplog):
        monkeypatch.setenv("BRAVE_MONTHLY_BUDGET", "lots")
        monkeypatch.setenv("MULTITOOL_HTTP_TIMEOUT_SEC", "-1")
        monkeypatch.setenv("MULTITOOL_MCP_DISPATCH_MAX_WORKERS", "0")
        with caplog.at_level("WARNING", logger="MultiTool.Config"):
            config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.brave.per_month_budget == 15000
        assert config.server.http_timeout_sec == 15.0
        assert config.server.dispatch_max_workers == 4
        assert "BRAVE_MONTHLY_BUDGET" in caplog.text

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("YES", True), ("0", False), ("off", False)])
    def test_bool_flags(self, monkeypatch, raw, expected):
        monkeypatch.setenv("BRAVE_ENFORCE_PER_SECOND", raw)
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.brave.enforce_per_second is expected

    def test_log_level_is_upper_cased(self, monkeypatch):
        monkeypatch.setenv("MULTITOOL_LOG_LEVEL", "debug")
        monkeypatch.setenv("MULTITOOL_LOG_FILE", "-")
        config = MultiToolConfig.from_env(load_dotenv_file=False)
        assert config.server.log_level == "DEBUG"
        assert config.server.log_file == "-"


class TestSectionDefaults:
    def test_sections(self):
        assert VaultConfig().configured is False
        assert BraveConfig().base_url == "https://api.search.brave.com/res/v1"
        assert KibelaConfig(team_name="t").configured is False
        assert GDriveConfig().scopes == ["https://www.googleapis.com/auth/drive.readonly"]
        assert SlackConfig(bot_token="x").configured is False
        assert ServerConfig().log_level == "INFO"


def test_get_config_is_cached_until_reset():
    first = get_config()
    assert get_config() is first
    set_config(None)
    assert get_config() is not first
