"""simshot configuration settings using pydantic-settings."""

from functools import cached_property
from pathlib import Path

import structlog
import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_WATCH_PATTERNS = [
    "**/*.tsx",
    "**/*.jsx",
    "**/*.ts",
    "**/*.js",
]

DEFAULT_IGNORE_PATTERNS = [
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.git/**",
    "**/android/**",
    "**/__tests__/**",
    "**/*.test.*",
    "**/*.spec.*",
]

DEFAULT_UI_KEYWORDS = [
    "View",
    "Text",
    "Image",
    "Button",
    "TouchableOpacity",
    "ScrollView",
    "FlatList",
    "StyleSheet",
    "style",
    "render",
    "return",
    "jsx",
    "tsx",
]


class Settings(BaseSettings):
    """Configuration settings for the simshot MCP server.

    Settings are loaded from environment variables with the SIMSHOT_ prefix.
    For example, SIMSHOT_MAX_SCREENSHOTS=20 sets max_screenshots to 20.
    They are read once at process start.
    """

    model_config = SettingsConfigDict(
        env_prefix="SIMSHOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Screenshot storage
    screenshots_dir: Path = Path("~/.simshot/screenshots")
    max_screenshots: int = 50

    # Watcher
    watch_path: Path = Field(default_factory=Path.cwd)
    debounce_delay_ms: int = 2000
    write_stability_ms: int = 500
    recent_changes_capacity: int = 50
    auto_capture: bool = True
    watch_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_WATCH_PATTERNS))
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    ui_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_UI_KEYWORDS))
    watch_config_file: Path = Path("~/.config/simshot/watch.yaml")

    # Simulator commands
    command_timeout: float = 10.0  # seconds per simctl invocation
    boot_settle_seconds: float = 2.0

    # Logging
    log_level: str = "INFO"

    @field_validator("max_screenshots")
    @classmethod
    def validate_max_screenshots(cls, v: int) -> int:
        """Ensure at least one screenshot is kept."""
        if v < 1:
            raise ValueError("max_screenshots must be at least 1")
        return v

    @field_validator("debounce_delay_ms", "write_stability_ms")
    @classmethod
    def validate_delay(cls, v: int) -> int:
        """Ensure delays are not negative."""
        if v < 0:
            raise ValueError("delays must be zero or positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @cached_property
    def screenshots_path(self) -> Path:
        """Return expanded screenshots directory path."""
        return self.screenshots_dir.expanduser()

    @cached_property
    def watch_root(self) -> Path:
        """Return the expanded, absolute watch root."""
        return self.watch_path.expanduser().resolve()

    @cached_property
    def watch_config_path(self) -> Path:
        """Return expanded watch overrides file path."""
        return self.watch_config_file.expanduser()

    @property
    def debounce_delay(self) -> float:
        """Debounce delay in seconds."""
        return self.debounce_delay_ms / 1000

    @property
    def write_stability(self) -> float:
        """Write-finished stability window in seconds."""
        return self.write_stability_ms / 1000

    def load_watch_rules(self) -> dict[str, list[str]]:
        """Load watch patterns, ignore patterns and UI keywords.

        Lists from the YAML overrides file are merged with the configured
        values. If the file doesn't exist, returns the configured values.
        """
        rules = {
            "watch_patterns": list(self.watch_patterns),
            "ignore_patterns": list(self.ignore_patterns),
            "ui_keywords": list(self.ui_keywords),
        }

        if not self.watch_config_path.exists():
            return rules

        try:
            with open(self.watch_config_path) as f:
                overrides = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "watch_config_load_failed", path=str(self.watch_config_path), error=str(e)
            )
            return rules

        if not isinstance(overrides, dict):
            logger.warning(
                "watch_config_load_failed",
                path=str(self.watch_config_path),
                error=f"expected a mapping, got {type(overrides).__name__}",
            )
            return rules

        for key, values in rules.items():
            extra = overrides.get(key) or []
            if isinstance(extra, str):
                extra = [extra]
            elif not isinstance(extra, list):
                logger.warning(
                    "watch_config_entry_ignored",
                    path=str(self.watch_config_path),
                    key=key,
                    error=f"expected a list, got {type(extra).__name__}",
                )
                continue
            # Keep configured order, append new entries from the file
            values.extend(v for v in extra if isinstance(v, str) and v not in values)

        return rules
