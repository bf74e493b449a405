"""
Views for read operations - separate from the batch write path.

Metrics come from precomputed snapshots when any exist for the requested
period and region; otherwise they are aggregated live over srag_cases.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from itertools import groupby
from typing import Any, Dict, Iterable, List, Optional

from srag_dp.domain.domain import (
    CaseFilter,
    GroupBy,
    LiveMetrics,
    MetricType,
    MetricValue,
    MetricsResult,
    Outcome,
    Period,
    SnapshotMetrics,
    growth_rate,
    percentage,
)
from srag_dp.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)

SNAPSHOT_LOOKUP_LIMIT = len(MetricType)
GROWTH_WINDOW_DAYS = 30
DEFAULT_SERIES_DAYS = 365


def get_metrics(
    period: str,
    case_filter: CaseFilter,
    uow: AbstractUnitOfWork,
    today: Optional[date] = None,
) -> MetricsResult:
    """
    Get the four dashboard indicators.

    Snapshots are looked up by a single region label (state if given,
    otherwise municipality). When at least one snapshot is found the result
    is built from the snapshot set alone and any missing indicator is 0;
    live aggregation only runs when no snapshot exists at all.
    """
    period = Period(period).value

    with uow:
        snapshots = uow.snapshots.latest(period, case_filter.region, limit=SNAPSHOT_LOOKUP_LIMIT)
        found = {}
        for snapshot in snapshots:
            found.setdefault(
                snapshot.metric_type,
                MetricValue(
                    value=snapshot.value,
                    period=snapshot.period,
                    reference_date=snapshot.reference_date,
                ),
            )

    if not found:
        logger.info(f"No {period} snapshots for region {case_filter.region}, computing live metrics")
        return calculate_live_metrics(case_filter, uow, today=today)

    missing = MetricValue(value=0)
    return SnapshotMetrics(
        case_rate=found.get(MetricType.CASE_RATE.value, missing),
        mortality_rate=found.get(MetricType.MORTALITY_RATE.value, missing),
        icu_rate=found.get(MetricType.ICU_RATE.value, missing),
        vaccination_rate=found.get(MetricType.VACCINATION_RATE.value, missing),
    )


def calculate_live_metrics(
    case_filter: CaseFilter,
    uow: AbstractUnitOfWork,
    today: Optional[date] = None,
) -> LiveMetrics:
    """
    Aggregate the indicators over the matching case records.

    The growth windows are anchored on today's date (wall clock), so results
    drift as time passes even when the data does not change.
    """
    today = today or datetime.now(timezone.utc).date()
    region_filter = CaseFilter(estado=case_filter.estado, municipio=case_filter.municipio)

    with uow:
        rates = compute_rates(uow, region_filter, anchor=today)

    return LiveMetrics(
        case_rate=MetricValue(value=rates[MetricType.CASE_RATE]),
        mortality_rate=MetricValue(value=rates[MetricType.MORTALITY_RATE]),
        icu_rate=MetricValue(value=rates[MetricType.ICU_RATE]),
        vaccination_rate=MetricValue(value=rates[MetricType.VACCINATION_RATE]),
    )


def compute_rates(uow: AbstractUnitOfWork, case_filter: CaseFilter, anchor: date) -> Dict[MetricType, float]:
    """
    Count-and-divide core shared by live metrics and the snapshot job.

    Must be called inside an open unit of work.
    """
    cases = uow.cases

    total_cases = cases.count(case_filter)
    deaths = cases.count(case_filter, evolucao_caso=Outcome.DEATH.value)
    hospitalized = cases.count(case_filter, hospitalizado=True)
    in_icu = cases.count(case_filter, uti_status=True)
    vaccinated = cases.count(case_filter, vacinado=True)

    window_start = anchor - timedelta(days=GROWTH_WINDOW_DAYS)
    previous_start = window_start - timedelta(days=GROWTH_WINDOW_DAYS)
    recent_cases = cases.count(case_filter, notified_since=window_start)
    previous_cases = cases.count(case_filter, notified_since=previous_start, notified_before=window_start)

    logger.debug(
        f"total={total_cases} deaths={deaths} hospitalized={hospitalized} icu={in_icu} "
        f"vaccinated={vaccinated} recent={recent_cases} previous={previous_cases}"
    )

    return {
        MetricType.CASE_RATE: growth_rate(recent_cases, previous_cases),
        MetricType.MORTALITY_RATE: percentage(deaths, total_cases),
        MetricType.ICU_RATE: percentage(in_icu, hospitalized),
        MetricType.VACCINATION_RATE: percentage(vaccinated, total_cases),
    }


def get_cases(
    group_by: str,
    case_filter: CaseFilter,
    uow: AbstractUnitOfWork,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Case counts per time bucket.

    Without a date range only the trailing 365 days are considered.
    """
    notified_since = None
    if not case_filter.has_date_range:
        today = today or datetime.now(timezone.utc).date()
        notified_since = today - timedelta(days=DEFAULT_SERIES_DAYS)

    with uow:
        dates = uow.cases.list_notification_dates(case_filter, notified_since=notified_since)

    return {
        "data": group_cases_by_period(dates, group_by),
        "total": len(dates),
    }


def bucket_key(notified: date, group_by: str) -> str:
    if group_by == GroupBy.DAILY.value:
        return notified.strftime("%Y-%m-%d")
    if group_by == GroupBy.MONTHLY.value:
        return f"{notified.year:04d}-{notified.month:02d}"
    return f"{notified.year:04d}"


def group_cases_by_period(dates: Iterable[date], group_by: str) -> List[Dict[str, Any]]:
    """
    Count notification dates per bucket, sorted ascending by bucket key.

    Unknown granularities fall back to yearly buckets.
    """
    group_by = getattr(group_by, "value", group_by)
    counts: Dict[str, int] = {}
    for notified in dates:
        key = bucket_key(notified, group_by)
        counts[key] = counts.get(key, 0) + 1

    return [{"date": key, "count": counts[key]} for key in sorted(counts)]


def get_regions(uow: AbstractUnitOfWork) -> List[Dict[str, Any]]:
    """Every state with its municipalities, both in ascending order."""
    with uow:
        pairs = uow.cases.list_state_municipalities()

    return [
        {"estado": estado, "municipios": [municipio for _, municipio in group]}
        for estado, group in groupby(pairs, key=lambda pair: pair[0])
    ]
