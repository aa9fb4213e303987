"""Tests for configuration classes and layered sources.

Tests DataGridSettings and its sections, TOML layering, environment
overrides and redaction of sensitive values.
"""

from __future__ import annotations

import logging

import pytest

from pydantic import ValidationError

from datagrid.config import (
    DataGridSettings,
    ExportSettings,
    LogSettings,
    StorageSettings,
    TableSettings,
    apply_log_settings,
    clear_settings,
    get_settings,
    reload_settings,
)
from datagrid.log import get_logger


class TestDefaults:
    """Tests for built-in defaults."""

    def test_storage_defaults(self):
        """Memory backend under the datagrid namespace."""
        settings = StorageSettings()
        assert settings.backend == "memory"
        assert settings.namespace == "datagrid"
        assert settings.redis_ttl is None

    def test_table_defaults(self):
        """25 rows per page keyed by id."""
        settings = TableSettings()
        assert settings.default_page_size == 25
        assert settings.page_size_options == [10, 25, 50, 100]
        assert settings.row_id_key == "id"
        assert settings.actions_key == "actions"

    def test_export_defaults(self):
        """Report title, A4 portrait, BOM on."""
        settings = ExportSettings()
        assert settings.default_title == "Report"
        assert settings.paper_size == "A4"
        assert settings.orientation == "portrait"
        assert settings.csv_bom is True
        assert settings.image_max_size == 40

    def test_log_defaults(self):
        """Warnings and above are logged."""
        assert LogSettings().level == "WARNING"


class TestValidation:
    """Tests for field validation."""

    def test_page_size_must_be_positive(self):
        """Zero rows per page is rejected."""
        with pytest.raises(ValidationError):
            TableSettings(default_page_size=0)

    def test_unknown_backend_rejected(self):
        """Only memory, file and redis are accepted."""
        with pytest.raises(ValidationError):
            StorageSettings(backend="sqlite")

    def test_paper_size_rejected(self):
        """Only the supported paper sizes are accepted."""
        with pytest.raises(ValidationError):
            ExportSettings(paper_size="B5")


class TestEnvironment:
    """Tests for environment overrides."""

    def test_section_env_vars(self, monkeypatch):
        """DATAGRID_<SECTION>__<FIELD> overrides a field."""
        monkeypatch.setenv("DATAGRID_TABLE__DEFAULT_PAGE_SIZE", "50")
        monkeypatch.setenv("DATAGRID_EXPORT__ORIENTATION", "landscape")
        monkeypatch.setenv("DATAGRID_LOG__LEVEL", "DEBUG")
        settings = DataGridSettings()
        assert settings.table.default_page_size == 50
        assert settings.export.orientation == "landscape"
        assert settings.log.level == "DEBUG"

    def test_comma_separated_list(self, monkeypatch):
        """List fields accept comma-separated values."""
        monkeypatch.setenv("DATAGRID_TABLE__PAGE_SIZE_OPTIONS", "5, 15,30")
        assert TableSettings().page_size_options == [5, 15, 30]


class TestTomlSources:
    """Tests for layered TOML configuration."""

    def test_datagrid_toml(self, tmp_path):
        """./datagrid.toml is read from the working directory."""
        (tmp_path / "datagrid.toml").write_text(
            '[table]\ndefault_page_size = 10\n\n[export]\ndefault_title = "Orders"\n',
            encoding="utf-8",
        )
        settings = DataGridSettings()
        assert settings.table.default_page_size == 10
        assert settings.export.default_title == "Orders"

    def test_pyproject_section(self, tmp_path):
        """[tool.datagrid] in pyproject.toml is read."""
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "x"\n\n[tool.datagrid.storage]\nnamespace = "shop"\n',
            encoding="utf-8",
        )
        assert DataGridSettings().storage.namespace == "shop"

    def test_datagrid_toml_overrides_pyproject(self, tmp_path):
        """Later files win key by key."""
        (tmp_path / "pyproject.toml").write_text(
            '[tool.datagrid.table]\ndefault_page_size = 10\nrow_id_key = "uuid"\n',
            encoding="utf-8",
        )
        (tmp_path / "datagrid.toml").write_text(
            "[table]\ndefault_page_size = 20\n", encoding="utf-8"
        )
        settings = DataGridSettings()
        assert settings.table.default_page_size == 20
        assert settings.table.row_id_key == "uuid"

    def test_explicit_config_file(self, tmp_path, monkeypatch):
        """DATAGRID_CONFIG_FILE points at an extra file."""
        path = tmp_path / "custom.toml"
        path.write_text('[log]\nlevel = "ERROR"\n', encoding="utf-8")
        monkeypatch.setenv("DATAGRID_CONFIG_FILE", str(path))
        assert DataGridSettings().log.level == "ERROR"

    def test_invalid_toml_is_ignored(self, tmp_path):
        """A broken file falls back to defaults."""
        (tmp_path / "datagrid.toml").write_text("[table\n", encoding="utf-8")
        assert DataGridSettings().table.default_page_size == 25

    def test_explicit_arguments_win(self, tmp_path):
        """Constructor arguments override file values."""
        (tmp_path / "datagrid.toml").write_text(
            "[table]\ndefault_page_size = 10\n", encoding="utf-8"
        )
        settings = DataGridSettings(table={"default_page_size": 75})
        assert settings.table.default_page_size == 75


class TestOutputFormats:
    """Tests for to_toml, to_env and show."""

    def test_to_toml_redacts_redis_url(self):
        """The Redis URL never appears in exported configuration."""
        settings = DataGridSettings(storage={"redis_url": "redis://:secret@host:6379/0"})
        output = settings.to_toml()
        assert "[storage]" in output
        assert "[table]" in output
        assert "secret" not in output
        assert 'redis_url = "********"' in output
        assert "page_size_options = [10, 25, 50, 100]" in output

    def test_to_env(self):
        """Each field becomes an export line."""
        output = DataGridSettings().to_env()
        assert 'export DATAGRID_TABLE__DEFAULT_PAGE_SIZE="25"' in output
        assert 'export DATAGRID_EXPORT__CSV_BOM="true"' in output
        assert 'export DATAGRID_TABLE__PAGE_SIZE_OPTIONS="10,25,50,100"' in output
        assert 'export DATAGRID_STORAGE__REDIS_URL="********"' in output

    def test_show(self):
        """show() lists every section."""
        output = DataGridSettings().show()
        for heading in ("Storage", "Table Defaults", "Export", "Logging"):
            assert heading in output


class TestGlobalSettings:
    """Tests for the cached global settings."""

    def test_cached(self):
        """get_settings returns the same instance until cleared."""
        first = get_settings()
        assert get_settings() is first
        clear_settings()
        assert get_settings() is not first

    def test_reload(self, monkeypatch):
        """reload_settings picks up new environment values."""
        get_settings()
        monkeypatch.setenv("DATAGRID_TABLE__DEFAULT_PAGE_SIZE", "40")
        assert reload_settings().table.default_page_size == 40

    def test_apply_log_settings(self):
        """The configured level is applied to the datagrid logger."""
        logger = get_logger()
        previous = logger.level
        try:
            apply_log_settings(DataGridSettings(log={"level": "ERROR"}))
            assert logger.level == logging.ERROR
        finally:
            logger.setLevel(previous)
