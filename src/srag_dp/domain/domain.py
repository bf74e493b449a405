"""
SRAG Data Product Domain Model
Case records from SIVEP-Gripe extracts and precomputed dashboard metrics
"""
import hashlib
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Dict, Optional, Union


UNKNOWN_MUNICIPALITY = "Desconhecido"


class MetricType(str, Enum):
    """Dashboard indicators"""
    CASE_RATE = "case_rate"
    MORTALITY_RATE = "mortality_rate"
    ICU_RATE = "icu_rate"
    VACCINATION_RATE = "vaccination_rate"


class Period(str, Enum):
    """Granularity a metric snapshot was computed for"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GroupBy(str, Enum):
    """Bucket size for the case time series"""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Outcome(str, Enum):
    """Case outcome (EVOLUCAO)"""
    CURE = "Cura"
    DEATH = "Óbito"


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"


@dataclass(unsafe_hash=True)
class CaseRecord:
    """
    One reported SRAG case.

    Tri-state flags hold True/False, or None when the extract says "ignored".
    The record_key is a digest of every normalized field and acts as the
    natural key used to skip duplicates on re-import.
    """
    data_notificacao: date
    estado: str
    municipio: str = UNKNOWN_MUNICIPALITY
    data_inicio_sint: Optional[date] = None
    idade_paciente: Optional[int] = None
    sexo_paciente: Optional[str] = None
    febre: Optional[bool] = None
    tosse: Optional[bool] = None
    dispneia: Optional[bool] = None
    saturacao: Optional[bool] = None
    hospitalizado: Optional[bool] = None
    data_internacao: Optional[date] = None
    uti_status: Optional[bool] = None
    data_entrada_uti: Optional[date] = None
    vacinado: Optional[bool] = None
    doses_vacina: Optional[int] = None
    evolucao_caso: Optional[str] = None
    data_evolucao: Optional[date] = None
    record_key: str = field(default="", compare=False)
    id: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.record_key:
            self.record_key = self.natural_key()

    def natural_key(self) -> str:
        """Deterministic digest of the normalized case fields."""
        parts = [
            self.data_notificacao,
            self.estado,
            self.municipio,
            self.data_inicio_sint,
            self.idade_paciente,
            self.sexo_paciente,
            self.febre,
            self.tosse,
            self.dispneia,
            self.saturacao,
            self.hospitalizado,
            self.data_internacao,
            self.uti_status,
            self.data_entrada_uti,
            self.vacinado,
            self.doses_vacina,
            self.evolucao_caso,
            self.data_evolucao,
        ]
        raw = "|".join("" if part is None else str(part) for part in parts)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def to_row(self) -> Dict:
        """Column mapping used for bulk inserts (id is generated by the store)."""
        return {
            "data_notificacao": self.data_notificacao,
            "data_inicio_sint": self.data_inicio_sint,
            "estado": self.estado,
            "municipio": self.municipio,
            "idade_paciente": self.idade_paciente,
            "sexo_paciente": self.sexo_paciente,
            "febre": self.febre,
            "tosse": self.tosse,
            "dispneia": self.dispneia,
            "saturacao": self.saturacao,
            "hospitalizado": self.hospitalizado,
            "data_internacao": self.data_internacao,
            "uti_status": self.uti_status,
            "data_entrada_uti": self.data_entrada_uti,
            "vacinado": self.vacinado,
            "doses_vacina": self.doses_vacina,
            "evolucao_caso": self.evolucao_caso,
            "data_evolucao": self.data_evolucao,
            "record_key": self.record_key,
        }


@dataclass(unsafe_hash=True)
class MetricSnapshot:
    """Precomputed indicator value; region None means national"""
    metric_type: str
    value: float
    period: str
    reference_date: date
    region: Optional[str] = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )
    id: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True)
class CaseFilter:
    """
    Region and notification-date filter for case queries.

    Blank strings are treated as absent. A date range needs both ends or
    neither, and must not be inverted.
    """
    estado: Optional[str] = None
    municipio: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        for name in ("estado", "municipio"):
            value = getattr(self, name)
            if value is not None:
                value = value.strip() or None
            object.__setattr__(self, name, value)

        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be given together")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date.isoformat()} is after end_date {self.end_date.isoformat()}"
            )

    @property
    def region(self) -> Optional[str]:
        """Single region label used to look up snapshots (state wins over municipality)."""
        return self.estado or self.municipio or None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class MetricValue:
    value: float
    period: Optional[str] = None
    reference_date: Optional[date] = None

    def to_dict(self) -> Dict:
        result = {"value": self.value}
        if self.period is not None:
            result["period"] = self.period
        if self.reference_date is not None:
            result["referenceDate"] = self.reference_date.isoformat()
        return result


@dataclass(frozen=True)
class IndicatorSet:
    """The four dashboard indicators"""
    case_rate: MetricValue
    mortality_rate: MetricValue
    icu_rate: MetricValue
    vaccination_rate: MetricValue

    source: ClassVar[str] = ""

    def to_dict(self) -> Dict:
        return {
            "caseRate": self.case_rate.to_dict(),
            "mortalityRate": self.mortality_rate.to_dict(),
            "icuRate": self.icu_rate.to_dict(),
            "vaccinationRate": self.vaccination_rate.to_dict(),
            "source": self.source,
        }


@dataclass(frozen=True)
class SnapshotMetrics(IndicatorSet):
    """Indicators read from precomputed snapshots"""
    source: ClassVar[str] = "snapshot"


@dataclass(frozen=True)
class LiveMetrics(IndicatorSet):
    """Indicators aggregated on the fly from case records"""
    source: ClassVar[str] = "live"


MetricsResult = Union[SnapshotMetrics, LiveMetrics]


def percentage(numerator: int, denominator: int) -> float:
    """numerator / denominator * 100, or 0 when the denominator is zero."""
    if denominator > 0:
        return numerator / denominator * 100
    return 0.0


def growth_rate(recent: int, previous: int) -> float:
    """Percentage change between two windows, or 0 without a baseline."""
    if previous > 0:
        return (recent - previous) / previous * 100
    return 0.0
