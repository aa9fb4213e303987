"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from datagrid.config import clear_settings
from datagrid.models import ColumnDef
from datagrid.state import MemoryKeyValueStore, clear_store_caches


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep every test away from real config files and DATAGRID_ variables.

    Runs each test in an empty working directory with HOME pointing at it,
    and drops the cached settings and store before and after.
    """
    import os

    for name in list(os.environ):
        if name.startswith("DATAGRID_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    monkeypatch.chdir(tmp_path)

    clear_settings()
    clear_store_caches()
    yield
    clear_settings()
    clear_store_caches()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    """Fresh in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def people() -> list[dict[str, Any]]:
    """Small mixed-type row set."""
    return [
        {"id": 1, "name": "Ada", "city": "London", "amount": 100, "created": "2024-01-05"},
        {"id": 2, "name": "Bo", "city": "Oslo", "amount": None, "created": "2024-02-10"},
        {"id": 3, "name": "Cy", "city": "Lisbon", "amount": 42.5, "created": "2024-03-15"},
        {"id": 4, "name": "Dee", "city": "london", "amount": 7, "created": None},
    ]


@pytest.fixture
def people_columns() -> list[ColumnDef]:
    """Column schema for ``people``."""
    return [
        ColumnDef(key="id", label="ID", searchable=False),
        ColumnDef(key="name", label="Name"),
        ColumnDef(key="city", label="City"),
        ColumnDef(key="amount", label="Amount", align="right"),
        ColumnDef(key="created", label="Created"),
    ]


@pytest.fixture
def fifty_rows() -> list[dict[str, Any]]:
    """Fifty rows with ids 1..50."""
    return [{"id": i, "name": f"Row {i}", "amount": i * 10} for i in range(1, 51)]
