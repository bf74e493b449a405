"""
Integration tests for the batch job handlers.

Commands are dispatched through the message bus against SQLite, then the
store is inspected through the repositories and views.
"""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from srag_dp import views
from srag_dp.adapters.csv_transformer import CSVTransformationError
from srag_dp.domain.commands import CalculateMetricSnapshots, ImportCases, SeedSampleCases
from srag_dp.domain.domain import CaseFilter, SnapshotMetrics
from srag_dp.service_layer import messagebus


def test_import_cases_from_example_extract(uow, sample_csv_path):
    summary = messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)

    assert summary.total_rows == 9
    assert summary.accepted == 6
    assert summary.inserted == 5
    assert summary.duplicates == 1
    assert summary.rejected == 3

    with uow:
        assert uow.cases.count(CaseFilter()) == 5
        assert uow.cases.count(CaseFilter(estado="SP")) == 2
        assert uow.cases.count(CaseFilter(), evolucao_caso="Óbito") == 2


def test_import_is_idempotent(uow, sample_csv_path):
    messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)
    second = messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)

    assert second.inserted == 0
    with uow:
        assert uow.cases.count(CaseFilter()) == 5


def test_import_in_small_batches(uow, sample_csv_path):
    summary = messagebus.handle(ImportCases(csv_path=sample_csv_path, batch_size=2), uow)

    assert summary.inserted == 5
    with uow:
        assert uow.cases.count(CaseFilter()) == 5


def test_imported_regions(uow, sample_csv_path):
    messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)

    assert views.get_regions(uow) == [
        {"estado": "MG", "municipios": ["BELO HORIZONTE"]},
        {"estado": "RJ", "municipios": ["Desconhecido", "RIO DE JANEIRO"]},
        {"estado": "SP", "municipios": ["CAMPINAS", "SAO PAULO"]},
    ]


def test_import_reports_progress_per_batch(uow, sample_csv_path, caplog):
    caplog.set_level("INFO", logger="srag_dp.service_layer.handlers")

    messagebus.handle(ImportCases(csv_path=sample_csv_path, batch_size=4), uow)

    progress = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Imported ")]
    assert progress == ["Imported 4 / 9 records", "Imported 6 / 9 records"]


def test_import_of_unreadable_csv_raises(uow, tmp_path):
    path = tmp_path / "broken.csv"
    path.write_text("SOMETHING;ELSE\n1;2\n", encoding="utf-8")

    with pytest.raises(CSVTransformationError):
        messagebus.handle(ImportCases(csv_path=str(path)), uow)


def test_store_failure_aborts_import(sqlite_session_factory, uow, sample_csv_path):
    from srag_dp.adapters import orm

    orm.srag_cases.drop(sqlite_session_factory.kw["bind"])

    with pytest.raises(OperationalError):
        messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)


def test_calculate_metric_snapshots_from_import(uow, sample_csv_path):
    messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)

    saved = messagebus.handle(CalculateMetricSnapshots(), uow)

    assert saved == ["case_rate", "mortality_rate", "icu_rate", "vaccination_rate"]
    metrics = views.get_metrics("monthly", CaseFilter(), uow)
    assert isinstance(metrics, SnapshotMetrics)
    # anchored on the latest notification (2024-05-20): 2 recent vs 1 previous
    assert metrics.case_rate.value == pytest.approx(100.0)
    assert metrics.mortality_rate.value == pytest.approx(40.0)
    assert metrics.icu_rate.value == pytest.approx(200 / 3)
    assert metrics.vaccination_rate.value == pytest.approx(40.0)
    assert metrics.case_rate.reference_date == date(2024, 5, 20)


def test_snapshots_are_not_duplicated(uow, sample_csv_path):
    messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)
    messagebus.handle(CalculateMetricSnapshots(), uow)

    assert messagebus.handle(CalculateMetricSnapshots(), uow) == []
    with uow:
        assert len(uow.snapshots.latest("monthly", None, limit=10)) == 4


def test_regional_snapshots(uow, sample_csv_path):
    messagebus.handle(ImportCases(csv_path=sample_csv_path), uow)

    messagebus.handle(CalculateMetricSnapshots(region="SP"), uow)

    metrics = views.get_metrics("monthly", CaseFilter(estado="SP"), uow)
    assert isinstance(metrics, SnapshotMetrics)
    assert metrics.mortality_rate.value == pytest.approx(50.0)
    assert metrics.case_rate.reference_date == date(2024, 3, 10)


def test_no_snapshots_without_cases(uow):
    assert messagebus.handle(CalculateMetricSnapshots(), uow) == []


def test_seed_sample_cases(uow):
    summary = messagebus.handle(SeedSampleCases(count=300, seed=7), uow)

    assert summary.total_rows == 300
    assert summary.accepted == 300
    with uow:
        assert uow.cases.count(CaseFilter()) == summary.inserted
    assert {region["estado"] for region in views.get_regions(uow)} <= {"SP", "RJ", "MG", "BA", "PR", "RS"}


def test_seed_sample_cases_uses_batch_size(uow, caplog):
    caplog.set_level("INFO", logger="srag_dp.service_layer.handlers")

    messagebus.handle(SeedSampleCases(count=250, seed=7, batch_size=100), uow)

    progress = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Imported ")]
    assert progress == [
        "Imported 100 / 250 records",
        "Imported 200 / 250 records",
        "Imported 250 / 250 records",
    ]


def test_unknown_command_is_rejected(uow):
    from shared.domain.commands import Command

    with pytest.raises(ValueError):
        messagebus.handle(Command(), uow)
