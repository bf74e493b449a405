"""Initial schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per reported SRAG case
    op.create_table(
        "srag_cases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("record_key", sa.String(64), nullable=False, unique=True),
        sa.Column("data_notificacao", sa.Date(), nullable=False),
        sa.Column("data_inicio_sint", sa.Date()),
        sa.Column("estado", sa.String(2), nullable=False),
        sa.Column("municipio", sa.String(255), nullable=False),
        sa.Column("idade_paciente", sa.Integer()),
        sa.Column("sexo_paciente", sa.String(1)),
        sa.Column("febre", sa.Boolean()),
        sa.Column("tosse", sa.Boolean()),
        sa.Column("dispneia", sa.Boolean()),
        sa.Column("saturacao", sa.Boolean()),
        sa.Column("hospitalizado", sa.Boolean()),
        sa.Column("data_internacao", sa.Date()),
        sa.Column("uti_status", sa.Boolean()),
        sa.Column("data_entrada_uti", sa.Date()),
        sa.Column("vacinado", sa.Boolean()),
        sa.Column("doses_vacina", sa.Integer()),
        sa.Column("evolucao_caso", sa.String(16)),
        sa.Column("data_evolucao", sa.Date()),
    )
    op.create_index("ix_srag_cases_data_notificacao", "srag_cases", ["data_notificacao"])
    op.create_index("ix_srag_cases_estado_municipio", "srag_cases", ["estado", "municipio"])

    # Precomputed dashboard indicators, newest reference_date wins
    op.create_table(
        "dashboard_metrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("metric_type", sa.String(32), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("period", sa.String(16), nullable=False),
        sa.Column("region", sa.String(255)),
        sa.Column("reference_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_dashboard_metrics_lookup", "dashboard_metrics", ["period", "region", "reference_date"]
    )


def downgrade() -> None:
    op.drop_table("dashboard_metrics")
    op.drop_table("srag_cases")
