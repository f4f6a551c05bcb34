"""Unified configuration management using YAML with environment overlay."""

import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

CONFIG_FILE = Path("agent-cli.yaml")


class CLIConfig(BaseModel):
    """Executable paths for each backend CLI.

    Resolution of these paths (searching PATH, npm prefixes, ...) is left to
    the caller; whatever is configured here is passed to the OS verbatim.
    """

    claude_path: str = Field("claude", description="Claude Code executable")
    codex_path: str = Field("codex", description="Codex CLI executable")
    gemini_path: str = Field("gemini", description="Gemini CLI executable")

    def path_for(self, cli_name: str) -> Optional[str]:
        return getattr(self, f"{cli_name}_path", None)


class ExecutionConfig(BaseModel):
    """Subprocess execution defaults."""

    default_timeout_ms: Optional[int] = Field(
        None, description="Timeout applied when a call sets none", gt=0
    )
    idle_timeout_ms: Optional[int] = Field(
        None, description="Kill the process if silent this long after first output", gt=0
    )
    kill_grace_ms: int = Field(
        2000, description="Delay between SIGTERM and SIGKILL on timeout", ge=0
    )
    read_chunk_size: int = Field(8192, description="Bytes per pipe read", ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Logging level")
    enabled: bool = Field(True, description="Attach a stderr handler to the SDK logger")
    execution_log_path: Optional[str] = Field(
        None, description="Default directory for per-call input/output logs"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class Settings(BaseSettings):
    """Unified settings for agent-cli-sdk."""

    cli: CLIConfig = Field(default_factory=CLIConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="AGENT_CLI__",
        env_nested_delimiter="__",  # Allows AGENT_CLI__EXECUTION__KILL_GRACE_MS
        extra="ignore",
        validate_default=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Customize settings sources to include a YAML file and legacy env vars."""
        from pydantic_settings.sources import PydanticBaseSettingsSource

        class YamlConfigSource(PydanticBaseSettingsSource):
            """Load settings from the YAML config file."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._yaml_config_source()

        class LegacyEnvVars(PydanticBaseSettingsSource):
            """Load flat environment variables such as CLAUDE_CLI_PATH."""

            def get_field_value(
                self, field: FieldInfo, field_name: str
            ) -> Tuple[Any, str, bool]:
                data = self()
                if field_name in data:
                    return data[field_name], field_name, True
                return None, field_name, False

            def __call__(self) -> Dict[str, Any]:
                return cls._legacy_env_source()

        # Precedence (first source wins):
        # init > nested env > legacy env > yaml > defaults
        return (
            init_settings,
            env_settings,
            LegacyEnvVars(settings_cls),
            YamlConfigSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def _yaml_config_source(cls) -> Dict[str, Any]:
        """Load configuration from the YAML file."""
        import sys

        # Keep tests isolated from a developer's local config file unless one
        # is explicitly requested.
        if "pytest" in sys.modules and "AGENT_CLI_CONFIG_FILE" not in os.environ:
            return {}

        config_file = Path(os.getenv("AGENT_CLI_CONFIG_FILE", str(CONFIG_FILE)))
        if not config_file.exists():
            return {}

        try:
            with open(config_file) as f:
                config_data = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from {config_file}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load {config_file}: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.warning(f"Ignoring {config_file}: top level is not a mapping")
            return {}

        # "cli:" with no content loads as None
        for key in list(config_data.keys()):
            if config_data[key] is None:
                config_data[key] = {}

        return config_data

    @classmethod
    def _legacy_env_source(cls) -> Dict[str, Any]:
        """Support flat environment variables."""
        config_data: Dict[str, Any] = {}

        legacy_mappings = {
            "CLAUDE_CLI_PATH": ("cli", "claude_path"),
            "CODEX_CLI_PATH": ("cli", "codex_path"),
            "GEMINI_CLI_PATH": ("cli", "gemini_path"),
            "LOG_LEVEL": ("logging", "level"),
            "AGENT_CLI_LOG_PATH": ("logging", "execution_log_path"),
        }

        for env_key, path in legacy_mappings.items():
            value = os.getenv(env_key)
            if value is None:
                continue
            current = config_data
            for key in path[:-1]:
                current = current.setdefault(key, {})
            current[path[-1]] = value

        return config_data


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
