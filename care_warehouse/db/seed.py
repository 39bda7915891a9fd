from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb
import structlog
import yaml

from care_calculators.leakage_risk_calculator.patient_processing import PATIENT_COLUMNS
from care_calculators.leakage_risk_calculator.referral_history import REFERRAL_COLUMNS
from care_calculators.provider_match_calculator.duckdb_matcher import PROVIDER_COLUMNS
from care_warehouse.db.bootstrap import INTAKE_SCHEMA, ensure_care_warehouse

logger = structlog.get_logger(__name__)

DEFAULT_SEED_PATH = Path(__file__).resolve().parents[1] / "seeds" / "sample_data.yaml"

SEED_TABLES: dict[str, tuple[str, ...]] = {
    "patients": PATIENT_COLUMNS,
    "providers": PROVIDER_COLUMNS,
    "referrals": REFERRAL_COLUMNS,
}


def load_seed_file(path: str | Path = DEFAULT_SEED_PATH) -> dict[str, list[dict[str, Any]]]:
    """Read a seed YAML file with `patients`, `providers` and `referrals` lists."""
    seed_path = Path(path).expanduser().resolve()
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")

    with seed_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Seed file must be a mapping of table name to rows: {seed_path}")

    unknown = set(data) - set(SEED_TABLES)
    if unknown:
        raise ValueError(f"Unknown seed tables in {seed_path}: {', '.join(sorted(unknown))}")
    return {table: list(data.get(table) or []) for table in SEED_TABLES}


def _insert_rows(
    con: duckdb.DuckDBPyConnection,
    schema: str,
    table: str,
    rows: list[dict[str, Any]],
) -> int:
    columns = SEED_TABLES[table]
    if not rows:
        return 0
    placeholders = ", ".join("?" for _ in columns)
    con.executemany(
        f"INSERT OR REPLACE INTO {schema}.{table} ({', '.join(columns)}) VALUES ({placeholders})",
        [[row.get(column) for column in columns] for row in rows],
    )
    return len(rows)


def seed_warehouse(
    con: duckdb.DuckDBPyConnection,
    seed_path: str | Path = DEFAULT_SEED_PATH,
    schema: str = INTAKE_SCHEMA,
) -> dict[str, int]:
    """Create the intake tables if needed and upsert the seed rows.

    Returns the number of rows written per table.
    """
    data = load_seed_file(seed_path)
    ensure_care_warehouse(con, schema)

    counts = {}
    for table in SEED_TABLES:
        counts[table] = _insert_rows(con, schema, table, data[table])
        logger.info("seeded_table", table=f"{schema}.{table}", rows=counts[table])
    return counts
