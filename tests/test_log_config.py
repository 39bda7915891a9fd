from __future__ import annotations

import structlog

from care_calculators.log_config import configure_logging


def test_events_render_as_key_values_on_stderr(capsys) -> None:
    configure_logging()
    logger = structlog.get_logger("care")
    logger.info("matching_providers", patient_id="P002", providers=5)
    logger.debug("hidden_at_info")

    err = capsys.readouterr().err
    assert "matching_providers" in err
    assert "patient_id=P002" in err
    assert "providers=5" in err
    assert "hidden_at_info" not in err


def test_verbose_emits_debug(capsys) -> None:
    configure_logging(verbose=True)
    structlog.get_logger("care").debug("seeded_table", table="main_intake.patients", rows=8)

    err = capsys.readouterr().err
    assert "seeded_table" in err
    assert "rows=8" in err
