"""Configuration management for gitpublisher.

This module defines the settings schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to GitPublisherConfig constructor)
2. Environment variables (GITPUBLISHER_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [logging]
    level = "DEBUG"
    format = "console"

    [publish]
    internal_tag_prefix = "ci"

Example environment variable override:
    GITPUBLISHER_LOGGING__LEVEL="WARNING"
    GITPUBLISHER_PUBLISH__BRANCHES_CONTINUE_ON_ENTRY_ERROR=true
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stderr only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="GITPUBLISHER_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="INFO")
    format: str = Field(default="console")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=50, ge=1, le=1000)
    retention_count: int = Field(default=10, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class PublishSettings(BaseSettings):
    """Publishing behaviour shared by every job.

    Attributes:
        internal_tag_prefix: Prefix of the merge-tag created for each build
        internal_tag_comment_prefix: Prefix of the merge-tag message, followed
            by the build number
        tag_message_template: Message for tags created by the tag publisher,
            ``{tag}`` is replaced with the tag name
        tags_continue_on_entry_error: Keep going after an invalid tag entry
        branches_continue_on_entry_error: Keep going after an invalid branch
            entry (off: the branch stage stops at the first invalid entry)
    """

    model_config = SettingsConfigDict(
        env_prefix="GITPUBLISHER_PUBLISH__",
        extra="forbid",
    )

    internal_tag_prefix: str = Field(default="hudson", min_length=1)
    internal_tag_comment_prefix: str = Field(default="Hudson Build #")
    tag_message_template: str = Field(default="Git publisher tagging with {tag}")
    tags_continue_on_entry_error: bool = Field(default=True)
    branches_continue_on_entry_error: bool = Field(default=False)

    @field_validator("tag_message_template")
    @classmethod
    def validate_tag_message_template(cls, v: str) -> str:
        """Validate the template references the tag name."""
        if "{tag}" not in v:
            raise ValueError("tag_message_template must contain the {tag} placeholder")
        return v


class GitPublisherConfig(BaseSettings):
    """Root configuration for gitpublisher.

    Environment variable format for nested config:
        GITPUBLISHER_<SECTION>__<KEY>=value
    """

    model_config = SettingsConfigDict(
        env_prefix="GITPUBLISHER_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    publish: PublishSettings = Field(default_factory=PublishSettings)


def load_config(config_path: Path | None = None) -> GitPublisherConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./gitpublisher.toml (current directory)
    3. ~/.config/gitpublisher/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        GitPublisherConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "gitpublisher.toml",
            Path.home() / ".config" / "gitpublisher" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    if selected_path is not None:
        with open(selected_path, "rb") as f:
            toml_data = tomli.load(f)

    # Pydantic overlays environment variables on top of the TOML data
    try:
        return GitPublisherConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
