from __future__ import annotations

import asyncio
from datetime import date, datetime
from pathlib import Path

import typer

from care_calculators.leakage_risk_calculator.calculator import LeakageRiskCalculator
from care_calculators.leakage_risk_calculator.duckdb_to_csv import score_from_duckdb_to_csv
from care_calculators.leakage_risk_calculator.explanations import (
    FACTOR_LABELS,
    explain_factor,
    recommend_interventions,
    summarize_risk,
    top_factors,
)
from care_calculators.leakage_risk_calculator.models import PatientInput
from care_calculators.leakage_risk_calculator.patient_processing import (
    PATIENT_COLUMNS,
    rows_to_patient_inputs,
)
from care_calculators.leakage_risk_calculator.referral_history import (
    DuckDBReferralHistoryProvider,
)
from care_calculators.log_config import configure_logging
from care_calculators.provider_match_calculator.duckdb_matcher import (
    match_from_duckdb,
    write_matches_yaml,
)
from care_warehouse.config import WarehouseConfig, load_config
from care_warehouse.db.bootstrap import ensure_care_warehouse
from care_warehouse.db.seed import DEFAULT_SEED_PATH, seed_warehouse
from care_warehouse.resources.duckdb_resource import DuckDBResource

app = typer.Typer(no_args_is_help=True, help="Care CLI - intake warehouse, risk scoring and provider matching")


def _parse_as_of(value: str | None, config: WarehouseConfig) -> date | None:
    if value:
        return date.fromisoformat(value)
    return config.as_of


def _resolve(ctx: typer.Context, duckdb_path: str | None) -> tuple[WarehouseConfig, DuckDBResource]:
    config: WarehouseConfig = ctx.obj or WarehouseConfig()
    return config, DuckDBResource(path=duckdb_path or config.duckdb_path)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(None, "--config", help="Warehouse config YAML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    configure_logging(verbose)
    ctx.obj = load_config(config_path)


@app.command(name="db-bootstrap")
def db_bootstrap(
    ctx: typer.Context,
    duckdb_path: str | None = typer.Option(None, "--duckdb-path"),
) -> None:
    """Create the intake schema and its tables in DuckDB.

    Creates: `{schema}.patients`, `{schema}.providers`, `{schema}.referrals`.
    """

    config, res = _resolve(ctx, duckdb_path)
    con = res.get_connection().connect()
    try:
        ensure_care_warehouse(con, config.schema_name)
    finally:
        con.close()

    typer.echo(f"Bootstrapped warehouse at {Path(res.path).resolve()}")


@app.command(name="db-seed")
def db_seed(
    ctx: typer.Context,
    duckdb_path: str | None = typer.Option(None, "--duckdb-path"),
    seed_file: Path = typer.Option(DEFAULT_SEED_PATH, "--seed-file", help="Seed data YAML"),
) -> None:
    """Load demo patients, providers and referrals into the warehouse."""

    config, res = _resolve(ctx, duckdb_path)
    con = res.get_connection().connect()
    try:
        counts = seed_warehouse(con, seed_file, config.schema_name)
    finally:
        con.close()

    summary = ", ".join(f"{count} {table}" for table, count in counts.items())
    typer.echo(f"Seeded {summary} into {Path(res.path).resolve()}")


@app.command(name="score-patients")
def score_patients(
    ctx: typer.Context,
    duckdb_path: str | None = typer.Option(None, "--duckdb-path"),
    output_csv: str | None = typer.Option(None, "--output-csv"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date YYYY-MM-DD"),
    limit: int | None = typer.Option(None, "--limit"),
) -> None:
    """Score every patient in the warehouse and write a CSV plus YAML details."""

    config, res = _resolve(ctx, duckdb_path)
    if not output_csv:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S%f")
        output_csv = str(Path(config.output_dir) / f"{timestamp}_risk_scores_out.csv")

    count = score_from_duckdb_to_csv(
        duckdb_path=res.path,
        output_csv_path=output_csv,
        schema=config.schema_name,
        as_of=_parse_as_of(as_of, config),
        limit=limit,
    )
    typer.echo(f"Wrote {count} rows to {Path(output_csv).expanduser().resolve()}")


@app.command(name="match-providers")
def match_providers(
    ctx: typer.Context,
    patient_id: str = typer.Argument(..., help="Patient id to match"),
    duckdb_path: str | None = typer.Option(None, "--duckdb-path"),
    limit: int | None = typer.Option(None, "--limit", min=0),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date YYYY-MM-DD"),
    output_yaml: str | None = typer.Option(None, "--output-yaml"),
) -> None:
    """Rank the best-fit providers for one patient."""

    config, res = _resolve(ctx, duckdb_path)
    try:
        matches = match_from_duckdb(
            duckdb_path=res.path,
            patient_id=patient_id,
            schema=config.schema_name,
            limit=config.match_limit if limit is None else limit,
            as_of=_parse_as_of(as_of, config),
        )
    except LookupError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    if not matches:
        typer.echo(f"No provider matches for patient {patient_id}")
        return

    for rank, m in enumerate(matches, start=1):
        network = "in-network" if m.in_network else "out-of-network"
        typer.echo(
            f"{rank}. {m.provider.name} - score {m.match_score}, {m.distance} mi, {network}"
        )
        for reason in m.explanation.reasons:
            typer.echo(f"   - {reason}")

    if output_yaml:
        path = write_matches_yaml(matches, output_yaml)
        typer.echo(f"Wrote {len(matches)} matches to {path}")


def _load_patient(res: DuckDBResource, schema: str, patient_id: str) -> PatientInput | None:
    con = res.get_connection(read_only=True).connect()
    try:
        rows = con.execute(
            f"""
            SELECT {", ".join(PATIENT_COLUMNS)}
            FROM {schema}.patients
            WHERE CAST(id AS VARCHAR) = ?
            """,
            [patient_id],
        ).fetchall()
    finally:
        con.close()
    patients, _ = rows_to_patient_inputs(rows)
    return patients[0] if patients else None


@app.command(name="explain-risk")
def explain_risk(
    ctx: typer.Context,
    patient_id: str = typer.Argument(..., help="Patient id to explain"),
    duckdb_path: str | None = typer.Option(None, "--duckdb-path"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date YYYY-MM-DD"),
) -> None:
    """Score one patient with referral history and print the explanation."""

    config, res = _resolve(ctx, duckdb_path)
    patient = _load_patient(res, config.schema_name, patient_id)
    if patient is None:
        typer.echo(f"Patient {patient_id} not found in {config.schema_name}.patients", err=True)
        raise typer.Exit(code=1)

    calculator = LeakageRiskCalculator(as_of=_parse_as_of(as_of, config))
    history = DuckDBReferralHistoryProvider(res.path, schema=config.schema_name)
    result = asyncio.run(calculator.score_with_history(patient, history))

    typer.echo(f"{patient.name or patient.id}: leakage risk {result.score} ({result.level.value})")
    typer.echo(summarize_risk(result.level))
    typer.echo("")
    for name, value in result.factors.model_dump().items():
        typer.echo(f"{FACTOR_LABELS[name]}: {value}")
        typer.echo(f"   {explain_factor(name, value)}")
    typer.echo("")
    typer.echo(
        "Top factors: " + ", ".join(FACTOR_LABELS[name] for name in top_factors(result.factors))
    )
    typer.echo("Recommended interventions:")
    for recommendation in recommend_interventions(result.factors):
        typer.echo(f"   - {recommendation}")


if __name__ == "__main__":
    app()
