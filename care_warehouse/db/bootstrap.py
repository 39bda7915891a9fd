from __future__ import annotations

import duckdb

from care_calculators.leakage_risk_calculator.models import ReferralStatus

INTAKE_SCHEMA = "main_intake"

REFERRAL_STATUSES = tuple(status.value for status in ReferralStatus)


def ensure_core_schemas(con: duckdb.DuckDBPyConnection, schema: str = INTAKE_SCHEMA) -> None:
    con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")


def ensure_intake_tables(con: duckdb.DuckDBPyConnection, schema: str = INTAKE_SCHEMA) -> None:
    con.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {schema}.patients (
            id VARCHAR PRIMARY KEY,
            name VARCHAR,
            date_of_birth DATE,
            diagnosis VARCHAR,
            discharge_date DATE,
            required_followup VARCHAR,
            insurance VARCHAR,
            address VARCHAR,
            leakage_risk_score INTEGER,
            leakage_risk_level VARCHAR,
            referral_status VARCHAR
        )
        """
    )

    con.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {schema}.providers (
            id VARCHAR PRIMARY KEY,
            name VARCHAR NOT NULL,
            type VARCHAR,
            address VARCHAR,
            phone VARCHAR,
            specialties VARCHAR[],
            accepted_insurance VARCHAR[],
            in_network_plans VARCHAR[],
            rating DOUBLE,
            latitude DOUBLE,
            longitude DOUBLE,
            availability_next VARCHAR
        )
        """
    )

    statuses = ", ".join(f"'{s}'" for s in REFERRAL_STATUSES)
    con.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {schema}.referrals (
            id VARCHAR PRIMARY KEY,
            patient_id VARCHAR NOT NULL,
            provider_id VARCHAR,
            service_type VARCHAR,
            status VARCHAR NOT NULL DEFAULT 'pending' CHECK (status IN ({statuses})),
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP
        )
        """
    )


def ensure_care_warehouse(con: duckdb.DuckDBPyConnection, schema: str = INTAKE_SCHEMA) -> None:
    ensure_core_schemas(con, schema)
    ensure_intake_tables(con, schema)
