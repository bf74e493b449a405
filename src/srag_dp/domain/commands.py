"""Commands for the SRAG data product batch jobs."""

from dataclasses import dataclass
from typing import Optional

from shared.domain.commands import Command


@dataclass
class ImportCases(Command):
    """Command to ingest a SIVEP-Gripe CSV extract into the case store."""
    csv_path: str
    batch_size: int = 1000
    encoding: str = "utf-8"


@dataclass
class SeedSampleCases(Command):
    """Command to synthesize randomized cases when no extract is available."""
    count: int = 1000
    seed: Optional[int] = None
    batch_size: int = 1000


@dataclass
class CalculateMetricSnapshots(Command):
    """Command to precompute the four dashboard indicators."""
    period: str = "monthly"
    region: Optional[str] = None  # None means national
