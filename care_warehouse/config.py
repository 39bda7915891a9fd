from __future__ import annotations

from datetime import date
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from care_calculators.provider_match_calculator.calculator import DEFAULT_MATCH_LIMIT
from care_warehouse.db.bootstrap import INTAKE_SCHEMA
from care_warehouse.resources.duckdb_resource import default_duckdb_path


class WarehouseConfig(BaseModel):
    """Settings shared by the warehouse CLI commands.

    Attributes:
        duckdb_path: DuckDB file; defaults to DUCKDB_PATH or the repo file
        schema_name: Schema holding patients, providers and referrals
        match_limit: Number of provider matches returned per patient
        as_of: Reference date for scoring; None means today
        output_dir: Directory for CSV and YAML exports
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    duckdb_path: str = Field(default_factory=default_duckdb_path)
    schema_name: str = Field(default=INTAKE_SCHEMA, alias="schema")
    match_limit: int = Field(default=DEFAULT_MATCH_LIMIT, ge=1)
    as_of: date | None = None
    output_dir: str = "tmp_exports"


def load_config(path: str | Path | None = None) -> WarehouseConfig:
    """Load a WarehouseConfig from YAML; no path gives the defaults.

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the YAML is not a mapping
        pydantic.ValidationError: If a value is invalid
    """
    if path is None:
        return WarehouseConfig()

    config_path = Path(path).expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must be a YAML mapping: {config_path}")
    return WarehouseConfig.model_validate(data)
