"""
MultiTool Configuration
-----------------------
Centralized configuration for every adapter. Values come from the process
environment (a ``.env`` file in the working directory is loaded first).

An adapter whose required values are missing is reported as unconfigured;
its tools still register and answer with an error instead of stopping the
server.
"""

import os
import logging
from pathlib import Path
from typing import Optional, Dict
from pydantic import BaseModel, Field
from dotenv import load_dotenv

logger = logging.getLogger("MultiTool.Config")

DEFAULT_DATA_DIR = str(Path.home() / ".multitool")
DEFAULT_MONTHLY_BUDGET = 15000
DEFAULT_PACING_DELAY_MS = 1100


def _parse_int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
        if value < minimum:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected integer >= %d. Using %d.",
            name,
            raw,
            minimum,
            default,
        )
        return default


def _parse_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
        if value <= 0:
            raise ValueError
        return value
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'; expected positive float. Using %s.",
            name,
            raw,
            default,
        )
        return default


def _parse_bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class VaultConfig(BaseModel):
    """Obsidian vault sandbox configuration."""
    path: str = ""
    view_cache_size: int = 128

    @property
    def configured(self) -> bool:
        return bool(self.path.strip())


class BraveConfig(BaseModel):
    """Brave Search API configuration."""
    api_key: str = ""
    base_url: str = "https://api.search.brave.com/res/v1"
    per_second_budget: int = 1
    per_month_budget: int = DEFAULT_MONTHLY_BUDGET
    enforce_per_second: bool = False
    monthly_rollover: bool = True
    pacing_delay_ms: int = DEFAULT_PACING_DELAY_MS

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class KibelaConfig(BaseModel):
    """Kibela GraphQL API configuration."""
    team_name: str = ""
    access_token: str = ""
    user_agent: str = "MultiToolKibelaIntegration/1.0"

    @property
    def endpoint(self) -> str:
        return f"https://{self.team_name}.kibe.la/api/v1"

    @property
    def configured(self) -> bool:
        return bool(self.team_name and self.access_token)


class GDriveConfig(BaseModel):
    """Google Drive OAuth configuration."""
    credentials_path: str = "./.gdrive-server-credentials.json"
    oauth_path: str = "./gcp-oauth.keys.json"
    scopes: list[str] = Field(
        default_factory=lambda: ["https://www.googleapis.com/auth/drive.readonly"]
    )

    @property
    def configured(self) -> bool:
        return Path(self.credentials_path).expanduser().exists()


class SlackConfig(BaseModel):
    """Slack Web API configuration."""
    bot_token: str = ""
    team_id: str = ""
    base_url: str = "https://slack.com/api"

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.team_id)


class ServerConfig(BaseModel):
    """Stdio MCP server configuration."""
    log_file: str = os.path.join(DEFAULT_DATA_DIR, "mcp_wrapper.log")
    log_level: str = "INFO"
    http_timeout_sec: float = 15.0
    tool_call_timeout_sec: float = 110.0
    tool_response_max_chars: int = 32768
    background_tools_call: bool = False
    dispatch_max_workers: int = 4


class MultiToolConfig(BaseModel):
    """Root configuration for the whole server."""
    vault: VaultConfig = Field(default_factory=VaultConfig)
    brave: BraveConfig = Field(default_factory=BraveConfig)
    kibela: KibelaConfig = Field(default_factory=KibelaConfig)
    gdrive: GDriveConfig = Field(default_factory=GDriveConfig)
    slack: SlackConfig = Field(default_factory=SlackConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "MultiToolConfig":
        """
        Load configuration from environment variables.

        - OBSIDIAN_VAULT_PATH: Sandbox root for every vault operation
        - BRAVE_API_KEY: Brave Search subscription token
        - BRAVE_MONTHLY_BUDGET / BRAVE_ENFORCE_PER_SECOND / BRAVE_MONTHLY_ROLLOVER
        - KIBELA_TEAM_NAME / KIBELA_ACCESS_TOKEN
        - GDRIVE_CREDENTIALS_PATH / GDRIVE_OAUTH_PATH
        - SLACK_BOT_TOKEN / SLACK_TEAM_ID
        - MULTITOOL_LOG_FILE / MULTITOOL_LOG_LEVEL
        - MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC / MULTITOOL_HTTP_TIMEOUT_SEC
        """
        if load_dotenv_file:
            load_dotenv()

        vault_path = os.environ.get("OBSIDIAN_VAULT_PATH", "").strip()

        return cls(
            vault=VaultConfig(
                path=vault_path,
                view_cache_size=_parse_int_env("MULTITOOL_VIEW_CACHE_SIZE", 128, minimum=0),
            ),
            brave=BraveConfig(
                api_key=os.environ.get("BRAVE_API_KEY", ""),
                per_month_budget=_parse_int_env(
                    "BRAVE_MONTHLY_BUDGET", DEFAULT_MONTHLY_BUDGET, minimum=1
                ),
                enforce_per_second=_parse_bool_env("BRAVE_ENFORCE_PER_SECOND", False),
                monthly_rollover=_parse_bool_env("BRAVE_MONTHLY_ROLLOVER", True),
                pacing_delay_ms=_parse_int_env(
                    "BRAVE_PACING_DELAY_MS", DEFAULT_PACING_DELAY_MS, minimum=0
                ),
            ),
            kibela=KibelaConfig(
                team_name=os.environ.get("KIBELA_TEAM_NAME", ""),
                access_token=os.environ.get("KIBELA_ACCESS_TOKEN", ""),
            ),
            gdrive=GDriveConfig(
                credentials_path=os.environ.get(
                    "GDRIVE_CREDENTIALS_PATH", "./.gdrive-server-credentials.json"
                ),
                oauth_path=os.environ.get("GDRIVE_OAUTH_PATH", "./gcp-oauth.keys.json"),
            ),
            slack=SlackConfig(
                bot_token=os.environ.get("SLACK_BOT_TOKEN", ""),
                team_id=os.environ.get("SLACK_TEAM_ID", ""),
            ),
            server=ServerConfig(
                log_file=os.environ.get(
                    "MULTITOOL_LOG_FILE", os.path.join(DEFAULT_DATA_DIR, "mcp_wrapper.log")
                ),
                log_level=os.environ.get("MULTITOOL_LOG_LEVEL", "INFO").upper(),
                http_timeout_sec=_parse_float_env("MULTITOOL_HTTP_TIMEOUT_SEC", 15.0),
                tool_call_timeout_sec=_parse_float_env(
                    "MULTITOOL_MCP_TOOL_CALL_TIMEOUT_SEC", 110.0
                ),
                tool_response_max_chars=_parse_int_env(
                    "MULTITOOL_MCP_TOOL_RESPONSE_MAX_CHARS", 32768, minimum=256
                ),
                background_tools_call=_parse_bool_env(
                    "MULTITOOL_MCP_BACKGROUND_TOOLS_CALL", False
                ),
                dispatch_max_workers=_parse_int_env(
                    "MULTITOOL_MCP_DISPATCH_MAX_WORKERS", 4, minimum=1
                ),
            ),
        )

    def adapter_status(self) -> Dict[str, bool]:
        return {
            "obsidian": self.vault.configured,
            "brave": self.brave.configured,
            "kibela": self.kibela.configured,
            "gdrive": self.gdrive.configured,
            "slack": self.slack.configured,
        }

    def startup_warnings(self) -> list[str]:
        warnings = []
        if not self.vault.configured:
            warnings.append("OBSIDIAN_VAULT_PATH is not set; vault tools are disabled")
        elif not Path(self.vault.path).expanduser().is_dir():
            warnings.append("OBSIDIAN_VAULT_PATH does not point to a directory")
        if not self.brave.configured:
            warnings.append("BRAVE_API_KEY is not set; Brave search will not work")
        if not self.kibela.configured:
            warnings.append("KIBELA_TEAM_NAME and KIBELA_ACCESS_TOKEN must be set for Kibela tools")
        if not self.gdrive.configured:
            warnings.append("Google Drive credentials not found; run `multitool gdrive-auth`")
        if not self.slack.configured:
            warnings.append("SLACK_BOT_TOKEN and SLACK_TEAM_ID must be set for Slack tools")
        return warnings


_CONFIG: Optional[MultiToolConfig] = None


def get_config() -> MultiToolConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = MultiToolConfig.from_env()
    return _CONFIG


def set_config(config: Optional[MultiToolConfig]) -> None:
    """Replace the process-wide config (``None`` forces a reload on next access)."""
    global _CONFIG
    _CONFIG = config
