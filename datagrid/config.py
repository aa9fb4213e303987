"""Configuration system for datagrid using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.datagrid] section (project-level)
3. ./datagrid.toml (project-level, explicit)
4. ~/.config/datagrid/config.toml (user-level, overrides project)
5. DATAGRID_CONFIG_FILE (explicit file)
6. Environment variables (highest priority)

Environment variables use DATAGRID_ prefix with nested delimiter __.
Example: DATAGRID_STORAGE__BACKEND=file, DATAGRID_TABLE__DEFAULT_PAGE_SIZE=50
"""

from __future__ import annotations

import os
import sys

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def _user_config_path() -> Path:
    if sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "~")) / "datagrid" / "config.toml"
    return Path("~/.config/datagrid/config.toml")


def _find_config_files() -> list[Path]:
    """Find all configuration files in order of precedence (lowest first)."""
    files = []

    pyproject = Path("pyproject.toml")
    if pyproject.exists():
        files.append(pyproject)

    datagrid_toml = Path("datagrid.toml")
    if datagrid_toml.exists():
        files.append(datagrid_toml)

    user_config = _user_config_path().expanduser()
    if user_config.exists():
        files.append(user_config)

    env_config = os.environ.get("DATAGRID_CONFIG_FILE")
    if env_config:
        env_path = Path(env_config)
        if env_path.exists():
            files.append(env_path)

    return files


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            content = config_file.read_text(encoding="utf-8")
            data = tomllib.loads(content)
        except (OSError, tomllib.TOMLDecodeError):
            continue  # invalid config files are ignored

        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("datagrid", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Field names that contain sensitive data and must be redacted in output.
_SENSITIVE_FIELDS: set[str] = {
    "redis_url",
}

_REDACTED = "********"


class StorageSettings(BaseSettings):
    """Persistence settings for column customizations.

    Environment prefix: DATAGRID_STORAGE__
    Example: DATAGRID_STORAGE__BACKEND=redis
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAGRID_STORAGE__",
        extra="ignore",
    )

    backend: Literal["memory", "file", "redis"] = Field(
        default="memory",
        description="Key-value backend: 'memory' (process), 'file' (JSON file) or 'redis'",
    )
    namespace: str = Field(
        default="datagrid",
        min_length=1,
        description="Prefix of persisted keys: '{namespace}-columns-{table_id}'",
    )
    file_path: str = Field(
        default="~/.config/datagrid/table-settings.json",
        description="JSON file used by the 'file' backend",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL used by the 'redis' backend",
    )
    redis_prefix: str = Field(default="datagrid", description="Redis key prefix")
    redis_ttl: int | None = Field(
        default=None,
        ge=1,
        description="Expiry in seconds for persisted settings (None keeps them forever)",
    )


class TableSettings(BaseSettings):
    """Default table behaviour.

    Environment prefix: DATAGRID_TABLE__
    Example: DATAGRID_TABLE__DEFAULT_PAGE_SIZE=50
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAGRID_TABLE__",
        extra="ignore",
    )

    default_page_size: int = Field(default=25, ge=1, description="Rows per page")
    page_size_options: Annotated[list[int], NoDecode] = Field(
        default_factory=lambda: [10, 25, 50, 100],
        description="Page sizes offered to the user",
    )
    row_id_key: str = Field(default="id", min_length=1, description="Unique row identifier")
    actions_key: str = Field(
        default="actions",
        description="Column key treated as UI-only and excluded from exports",
    )

    @field_validator("page_size_options", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Any) -> list[int]:
        """Parse comma-separated strings from env vars."""
        if isinstance(v, str):
            return [int(s.strip()) for s in v.split(",") if s.strip()]
        return v or []


class ExportSettings(BaseSettings):
    """Export defaults.

    Environment prefix: DATAGRID_EXPORT__
    Example: DATAGRID_EXPORT__ORIENTATION=landscape
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAGRID_EXPORT__",
        extra="ignore",
    )

    default_title: str = "Report"
    header_color: str = Field(default="#4472C4", description="Header row background")
    zebra_color: str = Field(default="#F2F2F2", description="Alternate row background")
    image_max_size: int = Field(default=40, ge=1, description="Max image size in px")
    csv_bom: bool = Field(default=True, description="Prefix CSV output with a UTF-8 BOM")
    include_header: bool = True
    include_footer: bool = True
    include_page_numbers: bool = True
    paper_size: Literal["A4", "A3", "letter", "legal"] = "A4"
    orientation: Literal["portrait", "landscape"] = "portrait"


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: DATAGRID_LOG__
    Example: DATAGRID_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAGRID_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: str = "%(name)s - %(levelname)s - %(message)s"


_SECTIONS: list[tuple[str, str, str]] = [
    ("Storage", "storage", "STORAGE"),
    ("Table Defaults", "table", "TABLE"),
    ("Export", "export", "EXPORT"),
    ("Logging", "log", "LOG"),
]


class DataGridSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: DATAGRID__
    """

    model_config = SettingsConfigDict(
        env_prefix="DATAGRID__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    table: TableSettings = Field(default_factory=TableSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        toml_config = _load_toml_config()
        merged = _deep_merge(toml_config, data)
        super().__init__(**merged)

    def to_toml(self) -> str:
        """Export settings as TOML string."""
        lines = ["# datagrid configuration", "# Generated by: datagrid config --toml", ""]

        section_names = [attr for _, attr, _ in _SECTIONS]
        all_data = self.model_dump(
            exclude=dict.fromkeys(section_names, _SENSITIVE_FIELDS),
        )

        for section_name in section_names:
            section_data = all_data.get(section_name, {})
            lines.append(f"[{section_name}]")
            for field_name, field_value in section_data.items():
                if field_value is None:
                    continue
                if isinstance(field_value, list):
                    value_str = "[" + ", ".join(_toml_scalar(v) for v in field_value) + "]"
                else:
                    value_str = _toml_scalar(field_value)
                lines.append(f"{field_name} = {value_str}")
            section_cls = type(getattr(self, section_name))
            lines.extend(
                f'{rn} = "{_REDACTED}"'
                for rn in sorted(_SENSITIVE_FIELDS & section_cls.model_fields.keys())
            )
            lines.append("")

        return "\n".join(lines)

    def to_env(self) -> str:
        """Export settings as shell environment variables."""
        lines = [
            "# datagrid environment variables",
            "# Generated by: datagrid config --env",
            "",
        ]

        all_data = self.model_dump(
            exclude={attr: _SENSITIVE_FIELDS for _, attr, _ in _SECTIONS},
        )

        for _, attr_name, env_prefix in _SECTIONS:
            section_data = all_data.get(attr_name, {})
            for field_name, field_value in section_data.items():
                if field_value is None:
                    continue
                env_name = f"DATAGRID_{env_prefix}__{field_name.upper()}"
                if isinstance(field_value, list):
                    value_str = ",".join(str(v) for v in field_value)
                elif isinstance(field_value, bool):
                    value_str = "true" if field_value else "false"
                else:
                    value_str = str(field_value)
                lines.append(f'export {env_name}="{value_str}"')
            section_cls = type(getattr(self, attr_name))
            for redacted_name in sorted(_SENSITIVE_FIELDS & section_cls.model_fields.keys()):
                env_name = f"DATAGRID_{env_prefix}__{redacted_name.upper()}"
                lines.append(f'export {env_name}="{_REDACTED}"')

        return "\n".join(lines)

    def show(self) -> str:
        """Format settings as a readable table."""
        lines = ["datagrid configuration", "=" * 60, ""]

        all_data = self.model_dump(
            exclude={attr: _SENSITIVE_FIELDS for _, attr, _ in _SECTIONS},
        )

        for display_name, attr_name, _ in _SECTIONS:
            section_data = all_data.get(attr_name, {})
            lines.append(f"\n{display_name}")
            lines.append("-" * 40)
            for field_name, field_value in section_data.items():
                value_str = str(field_value)
                if len(value_str) > 50:
                    value_str = value_str[:47] + "..."
                lines.append(f"  {field_name:20} = {value_str}")
            section_cls = type(getattr(self, attr_name))
            lines.extend(
                f"  {rn:20} = {_REDACTED}"
                for rn in sorted(_SENSITIVE_FIELDS & section_cls.model_fields.keys())
            )

        return "\n".join(lines)


def _toml_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@lru_cache(maxsize=1)
def get_settings() -> DataGridSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.
    """
    return DataGridSettings()


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> DataGridSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()


def apply_log_settings(settings: DataGridSettings | None = None) -> None:
    """Apply the configured log level and format to the datagrid logger."""
    from .log import set_format, set_level

    settings = settings or get_settings()
    set_level(settings.log.level)
    set_format(settings.log.format)
