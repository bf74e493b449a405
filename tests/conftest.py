# pylint: disable=redefined-outer-name
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, clear_mappers
from sqlalchemy.pool import StaticPool

from srag_dp.adapters import orm
from srag_dp.domain.domain import CaseRecord
from srag_dp.service_layer.unit_of_work import SqlAlchemyUnitOfWork

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


@pytest.fixture
def sqlite_session_factory():
    """Create SQLite in-memory database for fast testing."""
    # StaticPool keeps a single connection so API worker threads see the same database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    orm.metadata.create_all(engine)
    orm.start_mappers()

    yield sessionmaker(bind=engine)

    clear_mappers()
    engine.dispose()


@pytest.fixture
def uow(sqlite_session_factory):
    return SqlAlchemyUnitOfWork(session_factory=sqlite_session_factory)


@pytest.fixture
def sample_csv_path():
    """Example extract: 9 rows, 6 valid (one of them a duplicate), 3 rejected."""
    path = EXAMPLES_DIR / "srag_sample.csv"
    if not path.exists():
        raise FileNotFoundError(f"Example extract not found: {path}")
    return str(path)


@pytest.fixture
def add_cases(uow):
    """Store case records through the repository and commit."""
    def _add_cases(*records: CaseRecord) -> int:
        with uow:
            inserted = uow.cases.add_batch(records)
            uow.commit()
        return inserted

    return _add_cases


@pytest.fixture
def make_case():
    def _make_case(notified: date, estado: str = "SP", municipio: str = "SAO PAULO", **fields) -> CaseRecord:
        return CaseRecord(data_notificacao=notified, estado=estado, municipio=municipio, **fields)

    return _make_case
