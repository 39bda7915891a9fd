from __future__ import annotations

from datetime import date
from pathlib import Path

import duckdb
import pytest
from pydantic import ValidationError

from care_warehouse.config import WarehouseConfig, load_config
from care_warehouse.db.bootstrap import ensure_care_warehouse
from care_warehouse.db.seed import load_seed_file, seed_warehouse


def _table_names(con: duckdb.DuckDBPyConnection) -> set[str]:
    rows = con.execute(
        "SELECT table_name FROM information_schema.tables WHERE table_schema = 'main_intake'"
    ).fetchall()
    return {row[0] for row in rows}


def test_bootstrap_is_idempotent(tmp_path: Path) -> None:
    con = duckdb.connect(str(tmp_path / "wh.duckdb"))
    try:
        ensure_care_warehouse(con)
        ensure_care_warehouse(con)
        assert _table_names(con) == {"patients", "providers", "referrals"}
    finally:
        con.close()


def test_referral_status_is_checked(tmp_path: Path) -> None:
    con = duckdb.connect(str(tmp_path / "wh.duckdb"))
    try:
        ensure_care_warehouse(con)
        with pytest.raises(duckdb.Error):
            con.execute(
                "INSERT INTO main_intake.referrals (id, patient_id, status, created_at) "
                "VALUES ('R1', 'P1', 'lost', TIMESTAMP '2025-01-01 00:00:00')"
            )
    finally:
        con.close()


def test_seed_loads_sample_data(seeded_duckdb: Path) -> None:
    con = duckdb.connect(str(seeded_duckdb), read_only=True)
    try:
        counts = {
            table: con.execute(f"SELECT COUNT(*) FROM main_intake.{table}").fetchone()[0]
            for table in ("patients", "providers", "referrals")
        }
        specialties = con.execute(
            "SELECT specialties FROM main_intake.providers WHERE id = 'PRV004'"
        ).fetchone()[0]
    finally:
        con.close()
    assert counts == {"patients": 8, "providers": 8, "referrals": 6}
    assert "Cardiac Catheterization" in list(specialties)


def test_seed_twice_upserts(seeded_duckdb: Path) -> None:
    con = duckdb.connect(str(seeded_duckdb))
    try:
        counts = seed_warehouse(con)
        total = con.execute("SELECT COUNT(*) FROM main_intake.patients").fetchone()[0]
    finally:
        con.close()
    assert counts["patients"] == 8
    assert total == 8


def test_seed_file_rejects_unknown_tables(tmp_path: Path) -> None:
    seed = tmp_path / "seed.yaml"
    seed.write_text("patients: []\nappointments: []\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_seed_file(seed)


def test_seed_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_seed_file(tmp_path / "missing.yaml")


class TestWarehouseConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DUCKDB_PATH", raising=False)
        config = load_config()
        assert config.schema_name == "main_intake"
        assert config.match_limit == 5
        assert config.as_of is None
        assert config.duckdb_path.endswith("care_intake.duckdb")

    def test_env_overrides_duckdb_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DUCKDB_PATH", str(tmp_path / "env.duckdb"))
        assert WarehouseConfig().duckdb_path == str(tmp_path / "env.duckdb")

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "warehouse.yaml"
        path.write_text(
            "duckdb_path: /data/care.duckdb\nschema: intake_v2\nmatch_limit: 3\nas_of: 2025-01-22\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.duckdb_path == "/data/care.duckdb"
        assert config.schema_name == "intake_v2"
        assert config.match_limit == 3
        assert config.as_of == date(2025, 1, 22)

    def test_bundled_example_is_valid(self):
        example = Path(__file__).resolve().parents[1] / "care_warehouse" / "configs" / "warehouse_example.yaml"
        assert load_config(example).match_limit == 5

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / "warehouse.yaml"
        path.write_text("duckdb_pth: typo.duckdb\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "warehouse.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
