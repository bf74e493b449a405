"""SIVEP-Gripe CSV Transformer - Normalize raw surveillance rows into case records."""

import logging
from datetime import date, datetime
from itertools import islice
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import pandas as pd

from srag_dp.domain.domain import CaseRecord, Outcome, Sex, UNKNOWN_MUNICIPALITY

logger = logging.getLogger(__name__)

CSV_SEPARATOR = ";"
DATE_FORMAT = "%d/%m/%Y"
REQUIRED_COLUMNS = ("DT_NOTIFIC", "SG_UF")

YES = "1"
IGNORED = "9"

DOSE_FIELDS = ("DOSE_1_COV", "DOSE_2_COV", "DOSE_REF")

OUTCOME_CODES = {
    "1": Outcome.CURE.value,
    "2": Outcome.DEATH.value,
}


class CSVTransformer:
    """Transform raw SIVEP-Gripe rows (field code -> string) into CaseRecord entities."""

    @staticmethod
    def transform(rows: Iterable[Mapping[str, str]]) -> Iterator[CaseRecord]:
        """
        Lazily transform raw rows, dropping the ones that cannot become a case.

        A row is dropped when it has no parseable notification date or no
        state code. Dropped rows are not errors; only the caller's counts
        reflect them.
        """
        for row in rows:
            record = CSVTransformer.transform_row(row)
            if record is not None:
                yield record

    @staticmethod
    def transform_row(row: Mapping[str, str]) -> Optional[CaseRecord]:
        """Normalize one raw row, or return None when it must be skipped."""
        data_notificacao = CSVTransformer.parse_date(row.get("DT_NOTIFIC"))
        estado = _clean(row.get("SG_UF"))
        if data_notificacao is None or not estado:
            return None

        return CaseRecord(
            data_notificacao=data_notificacao,
            data_inicio_sint=CSVTransformer.parse_date(row.get("DT_SIN_PRI")),
            estado=estado,
            municipio=_clean(row.get("ID_MUNICIP")) or UNKNOWN_MUNICIPALITY,
            idade_paciente=CSVTransformer.parse_int(row.get("NU_IDADE_N")),
            sexo_paciente=CSVTransformer.parse_sex(row.get("CS_SEXO")),
            febre=CSVTransformer.parse_tristate(row.get("FEBRE")),
            tosse=CSVTransformer.parse_tristate(row.get("TOSSE")),
            dispneia=CSVTransformer.parse_tristate(row.get("DISPNEIA")),
            saturacao=CSVTransformer.parse_tristate(row.get("SATURACAO")),
            hospitalizado=CSVTransformer.parse_tristate(row.get("HOSPITAL")),
            data_internacao=CSVTransformer.parse_date(row.get("DT_INTERNA")),
            uti_status=CSVTransformer.parse_tristate(row.get("UTI")),
            data_entrada_uti=CSVTransformer.parse_date(row.get("DT_ENTUTI")),
            vacinado=CSVTransformer.parse_tristate(row.get("VACINA")),
            doses_vacina=CSVTransformer.count_doses(row),
            evolucao_caso=OUTCOME_CODES.get(_clean(row.get("EVOLUCAO"))),
            data_evolucao=CSVTransformer.parse_date(row.get("DT_EVOLUCA")),
        )

    @staticmethod
    def parse_date(value: Optional[str]) -> Optional[date]:
        """Parse DD/MM/YYYY; anything else becomes None."""
        value = _clean(value)
        if not value:
            return None
        try:
            return datetime.strptime(value, DATE_FORMAT).date()
        except ValueError:
            return None

    @staticmethod
    def parse_tristate(value: Optional[str]) -> Optional[bool]:
        """
        "1" is yes, empty or "9" is unknown.

        Every other code (including unexpected ones) is read as no.
        """
        value = _clean(value)
        if not value or value == IGNORED:
            return None
        return value == YES

    @staticmethod
    def parse_int(value: Optional[str]) -> Optional[int]:
        value = _clean(value)
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @staticmethod
    def parse_sex(value: Optional[str]) -> Optional[str]:
        value = _clean(value)
        if value in (Sex.MALE.value, Sex.FEMALE.value):
            return value
        return None

    @staticmethod
    def count_doses(row: Mapping[str, str]) -> Optional[int]:
        """Number of affirmative COVID dose fields; None when zero."""
        doses = sum(1 for name in DOSE_FIELDS if CSVTransformer.parse_tristate(row.get(name)))
        return doses or None


def _clean(value) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def batched(records: Iterable[CaseRecord], size: int) -> Iterator[List[CaseRecord]]:
    """Group records into lists of at most `size` items."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    iterator = iter(records)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


def read_csv_rows(path: str, encoding: str = "utf-8", chunksize: int = 1000) -> Iterator[Dict[str, str]]:
    """
    Stream rows of a semicolon-delimited extract as dicts of strings.

    Raises:
        CSVTransformationError: If the file cannot be parsed or lacks required columns
    """
    _check_header(path, encoding)
    reader = pd.read_csv(
        path,
        sep=CSV_SEPARATOR,
        dtype=str,
        keep_default_na=False,
        encoding=encoding,
        chunksize=chunksize,
    )
    with reader:
        for chunk in reader:
            for row in chunk.to_dict(orient="records"):
                yield row


def count_csv_rows(path: str, encoding: str = "utf-8") -> int:
    """Number of data rows in the extract, used as the progress denominator."""
    _check_header(path, encoding)
    total = 0
    reader = pd.read_csv(
        path,
        sep=CSV_SEPARATOR,
        dtype=str,
        keep_default_na=False,
        encoding=encoding,
        usecols=[REQUIRED_COLUMNS[0]],
        chunksize=10000,
    )
    with reader:
        for chunk in reader:
            total += len(chunk)
    return total


def _check_header(path: str, encoding: str) -> None:
    try:
        header = pd.read_csv(path, sep=CSV_SEPARATOR, dtype=str, encoding=encoding, nrows=0)
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise CSVTransformationError(f"Cannot read CSV {path}: {e}") from e

    missing = [column for column in REQUIRED_COLUMNS if column not in header.columns]
    if missing:
        raise CSVTransformationError(f"CSV {path} is missing required columns: {', '.join(missing)}")


class CSVTransformationError(Exception):
    """Exception raised when a CSV extract cannot be read at all."""
    pass
