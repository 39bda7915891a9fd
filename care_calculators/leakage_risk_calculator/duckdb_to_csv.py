from __future__ import annotations

import argparse
import csv
import os
from datetime import date, datetime
from pathlib import Path

import duckdb
import structlog
import yaml

from care_calculators.leakage_risk_calculator.calculator import LeakageRiskCalculator
from care_calculators.leakage_risk_calculator.explanations import (
    explain_factor,
    recommend_interventions,
    summarize_risk,
    top_factors,
)
from care_calculators.leakage_risk_calculator.models import ReferralRecord
from care_calculators.leakage_risk_calculator.patient_processing import (
    PATIENT_COLUMNS,
    rows_to_patient_inputs,
)
from care_calculators.leakage_risk_calculator.referral_history import (
    REFERRAL_COLUMNS,
    rows_to_referral_records,
)
from care_calculators.log_config import configure_logging

logger = structlog.get_logger(__name__)

YAML_DETAIL_LIMIT = 20


def _get_repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _default_duckdb_path() -> str:
    env_path = os.environ.get("DUCKDB_PATH")
    if env_path:
        return env_path
    return str((_get_repo_root() / "care_intake.duckdb").resolve())


def _table_exists(con: duckdb.DuckDBPyConnection, schema: str, table: str) -> bool:
    row = con.execute(
        """
        SELECT COUNT(*) FROM information_schema.tables
        WHERE table_schema = ? AND table_name = ?
        """,
        [schema, table],
    ).fetchone()
    return bool(row and row[0])


def _read_referral_histories(
    con: duckdb.DuckDBPyConnection, schema: str, table: str
) -> dict[str, list[ReferralRecord]]:
    rows = con.execute(
        f"""
        SELECT {", ".join(REFERRAL_COLUMNS)}
        FROM {schema}.{table}
        ORDER BY created_at DESC
        """
    ).fetchall()
    histories: dict[str, list[ReferralRecord]] = {}
    for record in rows_to_referral_records(rows):
        histories.setdefault(str(record.patient_id), []).append(record)
    return histories


def score_from_duckdb_to_csv(
    *,
    duckdb_path: str,
    output_csv_path: str,
    schema: str = "main_intake",
    table: str = "patients",
    referrals_table: str | None = "referrals",
    as_of: date | None = None,
    limit: int | None = None,
) -> int:
    """Read patients from DuckDB and write leakage risk scores to CSV.

    Returns number of rows written.

    Expected input relation: `{schema}.{table}` with the PATIENT_COLUMNS
    columns. When `{schema}.{referrals_table}` exists, each patient's
    referral history feeds the referral history factor; otherwise that
    factor takes its no-history default.
    """

    con = duckdb.connect(str(Path(duckdb_path).expanduser().resolve()), read_only=True)
    try:
        sql = f"""
        SELECT {", ".join(PATIENT_COLUMNS)}
        FROM {schema}.{table}
        ORDER BY id
        """.strip()
        if limit is not None:
            sql += f"\nLIMIT {int(limit)}"

        rows = con.execute(sql).fetchall()
        patients, stats = rows_to_patient_inputs(rows)

        histories: dict[str, list[ReferralRecord]] = {}
        if referrals_table and _table_exists(con, schema, referrals_table):
            histories = _read_referral_histories(con, schema, referrals_table)
        elif referrals_table:
            logger.warning(
                "referral_table_missing",
                table=f"{schema}.{referrals_table}",
                fallback="referral history factor uses its default",
            )

        calculator = LeakageRiskCalculator(as_of=as_of)
        reference_date = calculator.as_of

        output_path = Path(output_csv_path).expanduser().resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = [
            "patient_id",
            "name",
            "as_of",
            "age",
            "days_since_discharge",
            "prior_risk_score",
            "risk_score",
            "risk_level",
            "age_risk",
            "diagnosis_complexity",
            "time_since_discharge",
            "insurance_type",
            "geographic_factors",
            "previous_referral_history",
            "referral_count",
        ]

        yaml_dir = output_path.parent / "yaml_details"
        yaml_dir.mkdir(parents=True, exist_ok=True)

        with output_path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()

            for i, patient in enumerate(patients):
                referrals = histories.get(patient.id) if patient.id else None
                enhanced = calculator.enhance_patient(patient, referrals)
                result = enhanced.leakage_risk
                factors = result.factors.model_dump()

                if i < YAML_DETAIL_LIMIT:
                    yaml_data = {
                        "patient_id": patient.id,
                        "name": patient.name,
                        "as_of": reference_date.isoformat(),
                        "risk_score": result.score,
                        "risk_level": result.level.value,
                        "summary": summarize_risk(result.level),
                        "factors": {
                            name: {"value": value, "explanation": explain_factor(name, value)}
                            for name, value in factors.items()
                        },
                        "top_factors": top_factors(result.factors),
                        "recommendations": recommend_interventions(result.factors),
                    }
                    detail_name = patient.id or f"row_{i:05d}"
                    with (yaml_dir / f"{detail_name}.yml").open("w", encoding="utf-8") as yf:
                        yaml.dump(yaml_data, yf, sort_keys=False)

                writer.writerow(
                    {
                        "patient_id": patient.id,
                        "name": patient.name,
                        "as_of": reference_date.isoformat(),
                        "age": enhanced.age,
                        "days_since_discharge": enhanced.days_since_discharge,
                        "prior_risk_score": patient.leakage_risk_score,
                        "risk_score": result.score,
                        "risk_level": result.level.value,
                        "age_risk": factors["age"],
                        "diagnosis_complexity": factors["diagnosis_complexity"],
                        "time_since_discharge": factors["time_since_discharge"],
                        "insurance_type": factors["insurance_type"],
                        "geographic_factors": factors["geographic_factors"],
                        "previous_referral_history": factors["previous_referral_history"],
                        "referral_count": len(referrals or []),
                    }
                )

        skipped = int(stats.get("skipped", 0))
        invalid = int(stats.get("invalid", 0))
        if skipped or invalid:
            total_rows = len(rows)
            pct = ((skipped + invalid) / total_rows) * 100 if total_rows > 0 else 0
            logger.warning(
                "patient_rows_skipped",
                no_scoring_fields=skipped,
                invalid=invalid,
                total=total_rows,
                pct=round(pct, 2),
            )

        return len(patients)
    finally:
        con.close()


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="care_calculators.leakage_risk_calculator.duckdb_to_csv",
        description="Read main_intake.patients from DuckDB and write leakage risk scores to CSV.",
    )
    p.add_argument(
        "--duckdb-path",
        default=_default_duckdb_path(),
        help="Path to DuckDB file (default: DUCKDB_PATH env var or repo care_intake.duckdb)",
    )
    p.add_argument(
        "--output-csv",
        required=False,
        help="Output CSV path. Defaults to tmp_exports/YYYYMMDD_HHMMSSffffff_risk_scores_out.csv",
    )
    p.add_argument("--schema", default="main_intake", help="DuckDB schema holding intake tables")
    p.add_argument("--table", default="patients", help="Patients table/view name")
    p.add_argument(
        "--referrals-table",
        default="referrals",
        help="Referrals table/view name feeding the referral history factor",
    )
    p.add_argument(
        "--as-of",
        default=None,
        help="Reference date (YYYY-MM-DD) for age and days since discharge; defaults to today",
    )
    p.add_argument("--limit", type=int, default=None, help="Optional row limit for smoke tests")
    return p


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)

    output_csv = args.output_csv
    if not output_csv:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")
        output_csv = str(Path(__file__).parent / "tmp_exports" / f"{timestamp}_risk_scores_out.csv")

    count = score_from_duckdb_to_csv(
        duckdb_path=args.duckdb_path,
        output_csv_path=output_csv,
        schema=str(args.schema),
        table=str(args.table),
        referrals_table=str(args.referrals_table) if args.referrals_table else None,
        as_of=date.fromisoformat(args.as_of) if args.as_of else None,
        limit=args.limit,
    )

    print(f"Wrote {count} rows to {Path(output_csv).expanduser().resolve()}")
    return 0


if __name__ == "__main__":
    configure_logging()
    raise SystemExit(main())
