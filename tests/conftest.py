from __future__ import annotations

from datetime import date
from pathlib import Path

import duckdb
import pytest
import structlog

from care_warehouse.db.seed import seed_warehouse

AS_OF = date(2025, 1, 22)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo logging configuration applied by CLI entry points."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def as_of() -> date:
    """Fixed reference date matching the seed data (a Wednesday)."""
    return AS_OF


@pytest.fixture
def seeded_duckdb(tmp_path: Path) -> Path:
    """DuckDB file with the intake tables and the bundled sample data."""
    duckdb_path = tmp_path / "care_intake.duckdb"
    con = duckdb.connect(str(duckdb_path))
    try:
        seed_warehouse(con)
    finally:
        con.close()
    return duckdb_path
