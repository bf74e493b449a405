import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError

from srag_dp import views
from srag_dp.adapters.csv_transformer import (
    CSVTransformer,
    CSVTransformationError,
    batched,
    count_csv_rows,
    read_csv_rows,
)
from srag_dp.domain.commands import CalculateMetricSnapshots, ImportCases, SeedSampleCases
from srag_dp.domain.domain import CaseFilter, CaseRecord, MetricSnapshot, Period
from srag_dp.service_layer.sample_data import generate_sample_cases
from srag_dp.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    """Aggregate counts of one import run."""
    total_rows: int = 0
    accepted: int = 0  # rows that became case records
    inserted: int = 0  # records actually written (duplicates excluded)

    @property
    def rejected(self) -> int:
        return self.total_rows - self.accepted

    @property
    def duplicates(self) -> int:
        return self.accepted - self.inserted


def import_cases(command: ImportCases, uow: AbstractUnitOfWork) -> ImportSummary:
    """
    Load a SIVEP-Gripe CSV extract into the case store.

    Flow:
    1. Stream rows from the CSV and normalize them (invalid rows are dropped)
    2. Group records into batches of command.batch_size
    3. Insert each batch in its own transaction, skipping duplicates
    4. Report progress after every committed batch

    A failing batch aborts the run; batches committed before it stay in the
    store, so re-running the import is safe.

    Raises:
        CSVTransformationError: If the file cannot be read
        SQLAlchemyError: If a batch cannot be stored
    """
    logger.info(f"Processing ImportCases command for {command.csv_path}")

    try:
        summary = ImportSummary(total_rows=count_csv_rows(command.csv_path, command.encoding))
        logger.info(f"Transforming and importing {summary.total_rows} records...")

        rows = read_csv_rows(command.csv_path, command.encoding, chunksize=command.batch_size)
        records = CSVTransformer.transform(rows)
        _store_in_batches(records, command.batch_size, uow, summary)

    except CSVTransformationError as e:
        logger.error(f"Failed to read {command.csv_path}: {e}")
        raise

    except SQLAlchemyError as e:
        logger.error(f"Failed to store cases from {command.csv_path}: {e}")
        raise

    logger.info(
        f"Successfully imported {summary.inserted} records "
        f"({summary.rejected} rejected, {summary.duplicates} duplicates)"
    )
    return summary


def seed_sample_cases(command: SeedSampleCases, uow: AbstractUnitOfWork) -> ImportSummary:
    """Populate the case store with randomized cases from the last 365 days."""
    logger.info(f"Creating {command.count} sample cases")

    summary = ImportSummary(total_rows=command.count)
    records = generate_sample_cases(
        command.count,
        today=datetime.now(timezone.utc).date(),
        rng=random.Random(command.seed),
    )
    _store_in_batches(records, command.batch_size, uow, summary)

    logger.info(f"Sample data created: {summary.inserted} cases")
    return summary


def _store_in_batches(
    records: Iterable[CaseRecord],
    batch_size: int,
    uow: AbstractUnitOfWork,
    summary: ImportSummary,
) -> None:
    for batch in batched(records, batch_size):
        with uow:
            inserted = uow.cases.add_batch(batch)
            uow.commit()

        summary.accepted += len(batch)
        summary.inserted += inserted
        logger.info(f"Imported {summary.accepted} / {summary.total_rows} records")


def calculate_metric_snapshots(command: CalculateMetricSnapshots, uow: AbstractUnitOfWork) -> List[str]:
    """
    Precompute the four indicators and store them as snapshots.

    The reference date is the most recent notification date in the store, and
    the growth windows are anchored on it. Snapshots already stored for the
    same type, period, region and reference date are left as they are.

    Returns:
        Metric types that were saved
    """
    period = Period(command.period).value
    case_filter = CaseFilter(estado=command.region)
    logger.info(f"Calculating {period} metric snapshots for region {command.region or 'national'}")

    saved = []
    with uow:
        reference_date = uow.cases.latest_notification_date(case_filter)
        if reference_date is None:
            logger.warning("No cases found to calculate metrics")
            return saved

        rates = views.compute_rates(uow, case_filter, anchor=reference_date)

        for metric_type, value in rates.items():
            if uow.snapshots.exists(metric_type.value, period, command.region, reference_date):
                logger.info(f"Snapshot {metric_type.value} for {reference_date} already stored")
                continue

            uow.snapshots.add(
                MetricSnapshot(
                    metric_type=metric_type.value,
                    value=value,
                    period=period,
                    region=command.region,
                    reference_date=reference_date,
                )
            )
            saved.append(metric_type.value)

        uow.commit()

    logger.info(f"Metrics calculated successfully: {saved}")
    return saved
