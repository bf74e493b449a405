import logging
from sqlalchemy import (
    Table,
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    inspect,
)
from sqlalchemy.orm import registry
from srag_dp.domain import domain

logger = logging.getLogger(__name__)

# SQLAlchemy 2.0 pattern: use registry
mapper_registry = registry()
metadata = mapper_registry.metadata

srag_cases = Table(
    "srag_cases",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("record_key", String(64), unique=True, nullable=False),
    Column("data_notificacao", Date, nullable=False),
    Column("data_inicio_sint", Date),
    Column("estado", String(2), nullable=False),
    Column("municipio", String(255), nullable=False),
    Column("idade_paciente", Integer),
    Column("sexo_paciente", String(1)),
    Column("febre", Boolean),
    Column("tosse", Boolean),
    Column("dispneia", Boolean),
    Column("saturacao", Boolean),
    Column("hospitalizado", Boolean),
    Column("data_internacao", Date),
    Column("uti_status", Boolean),
    Column("data_entrada_uti", Date),
    Column("vacinado", Boolean),
    Column("doses_vacina", Integer),
    Column("evolucao_caso", String(16)),
    Column("data_evolucao", Date),
    Index("ix_srag_cases_data_notificacao", "data_notificacao"),
    Index("ix_srag_cases_estado_municipio", "estado", "municipio"),
)

dashboard_metrics = Table(
    "dashboard_metrics",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("metric_type", String(32), nullable=False),
    Column("value", Float, nullable=False),
    Column("period", String(16), nullable=False),
    Column("region", String(255)),
    Column("reference_date", Date, nullable=False),
    Column("created_at", DateTime(timezone=True)),
    Index("ix_dashboard_metrics_lookup", "period", "region", "reference_date"),
)


def start_mappers():
    if inspect(domain.CaseRecord, raiseerr=False) is not None:
        logger.debug("Mappers already started")
        return
    logger.info("Starting mappers")
    mapper_registry.map_imperatively(domain.CaseRecord, srag_cases)
    mapper_registry.map_imperatively(domain.MetricSnapshot, dashboard_metrics)
