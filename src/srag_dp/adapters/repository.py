import abc
import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

from srag_dp.adapters import orm
from srag_dp.domain import domain

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AbstractCaseRepository(abc.ABC):
    def add_batch(self, records: Iterable[domain.CaseRecord]) -> int:
        """Insert records, silently skipping natural-key duplicates. Returns rows inserted."""
        records = list(records)
        if not records:
            return 0
        return self._add_batch(records)

    def get(self, record_key: str) -> Optional[domain.CaseRecord]:
        return self._get(record_key)

    def count(
        self,
        case_filter: domain.CaseFilter,
        notified_since: Optional[date] = None,
        notified_before: Optional[date] = None,
        **conditions,
    ) -> int:
        return self._count(case_filter, notified_since, notified_before, conditions)

    def list_notification_dates(
        self,
        case_filter: domain.CaseFilter,
        notified_since: Optional[date] = None,
    ) -> List[date]:
        return self._list_notification_dates(case_filter, notified_since)

    def latest_notification_date(self, case_filter: domain.CaseFilter) -> Optional[date]:
        return self._latest_notification_date(case_filter)

    def list_state_municipalities(self) -> List[Tuple[str, str]]:
        return self._list_state_municipalities()

    @abc.abstractmethod
    def _add_batch(self, records: List[domain.CaseRecord]) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def _get(self, record_key: str) -> Optional[domain.CaseRecord]:
        raise NotImplementedError

    @abc.abstractmethod
    def _count(self, case_filter, notified_since, notified_before, conditions) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_notification_dates(self, case_filter, notified_since) -> List[date]:
        raise NotImplementedError

    @abc.abstractmethod
    def _latest_notification_date(self, case_filter) -> Optional[date]:
        raise NotImplementedError

    @abc.abstractmethod
    def _list_state_municipalities(self) -> List[Tuple[str, str]]:
        raise NotImplementedError


class SqlAlchemyCaseRepository(AbstractCaseRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _add_batch(self, records):
        dialect = self.session.get_bind().dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise NotImplementedError(f"Duplicate-skipping insert not supported for {dialect}")

        table = orm.srag_cases
        stmt = insert(table).on_conflict_do_nothing(index_elements=[table.c.record_key])

        before = self._total()
        self.session.execute(stmt, [record.to_row() for record in records])
        inserted = self._total() - before

        skipped = len(records) - inserted
        if skipped:
            logger.debug(f"Skipped {skipped} duplicate case records")
        return inserted

    def _total(self) -> int:
        return self.session.execute(
            select(func.count()).select_from(orm.srag_cases)
        ).scalar_one()

    def _get(self, record_key):
        return self.session.query(domain.CaseRecord).filter_by(record_key=record_key).first()

    def _count(self, case_filter, notified_since, notified_before, conditions):
        table = orm.srag_cases
        stmt = self._apply_filter(select(func.count()).select_from(table), case_filter)
        if notified_since is not None:
            stmt = stmt.where(table.c.data_notificacao >= notified_since)
        if notified_before is not None:
            stmt = stmt.where(table.c.data_notificacao < notified_before)
        for column, value in conditions.items():
            stmt = stmt.where(table.c[column] == value)
        return self.session.execute(stmt).scalar_one()

    def _list_notification_dates(self, case_filter, notified_since):
        table = orm.srag_cases
        stmt = self._apply_filter(select(table.c.data_notificacao), case_filter)
        if notified_since is not None:
            stmt = stmt.where(table.c.data_notificacao >= notified_since)
        stmt = stmt.order_by(table.c.data_notificacao.asc())
        return list(self.session.execute(stmt).scalars())

    def _latest_notification_date(self, case_filter):
        table = orm.srag_cases
        stmt = self._apply_filter(select(func.max(table.c.data_notificacao)), case_filter)
        return self.session.execute(stmt).scalar()

    def _list_state_municipalities(self):
        table = orm.srag_cases
        stmt = (
            select(table.c.estado, table.c.municipio)
            .group_by(table.c.estado, table.c.municipio)
            .order_by(table.c.estado.asc(), table.c.municipio.asc())
        )
        return [(estado, municipio) for estado, municipio in self.session.execute(stmt)]

    @staticmethod
    def _apply_filter(stmt, case_filter: domain.CaseFilter):
        table = orm.srag_cases
        if case_filter.estado:
            stmt = stmt.where(table.c.estado == case_filter.estado)
        if case_filter.municipio:
            stmt = stmt.where(table.c.municipio == case_filter.municipio)
        if case_filter.start_date:
            stmt = stmt.where(table.c.data_notificacao >= case_filter.start_date)
        if case_filter.end_date:
            stmt = stmt.where(table.c.data_notificacao <= case_filter.end_date)
        return stmt


class AbstractSnapshotRepository(abc.ABC):
    def add(self, snapshot: domain.MetricSnapshot) -> None:
        self._add(snapshot)

    def latest(self, period: str, region: Optional[str], limit: int = 4) -> List[domain.MetricSnapshot]:
        return self._latest(period, region, limit)

    def exists(self, metric_type: str, period: str, region: Optional[str], reference_date: date) -> bool:
        return self._exists(metric_type, period, region, reference_date)

    @abc.abstractmethod
    def _add(self, snapshot: domain.MetricSnapshot):
        raise NotImplementedError

    @abc.abstractmethod
    def _latest(self, period, region, limit) -> List[domain.MetricSnapshot]:
        raise NotImplementedError

    @abc.abstractmethod
    def _exists(self, metric_type, period, region, reference_date) -> bool:
        raise NotImplementedError


class SqlAlchemySnapshotRepository(AbstractSnapshotRepository):
    def __init__(self, session):
        super().__init__()
        self.session = session

    def _add(self, snapshot):
        self.session.add(snapshot)

    def _latest(self, period, region, limit):
        return (
            self.session.query(domain.MetricSnapshot)
            .filter_by(period=period, region=region)
            .order_by(domain.MetricSnapshot.reference_date.desc(), domain.MetricSnapshot.id.desc())
            .limit(limit)
            .all()
        )

    def _exists(self, metric_type, period, region, reference_date):
        return (
            self.session.query(domain.MetricSnapshot)
            .filter_by(
                metric_type=metric_type,
                period=period,
                region=region,
                reference_date=reference_date,
            )
            .first()
            is not None
        )
