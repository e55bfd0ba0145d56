"""
Birth date validation for citizen records.

Records whose birth date cannot be read are kept out of the scan and
reported as data-quality warnings instead of aborting the whole scan.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterable, List, Tuple, Union

from ..core.citizen import CitizenRecord

logger = logging.getLogger(__name__)


class InvalidBirthDate(ValueError):
    """Raised when a birth date value cannot be parsed."""


@dataclass(frozen=True, slots=True)
class DataQualityWarning:
    """A record left out of the scan because of bad data."""
    record_id: int
    field: str
    value: str
    message: str

    def __str__(self) -> str:
        return f"Record #{self.record_id}: {self.message} ({self.field}={self.value!r})"


def parse_birth_date(value: Union[date, datetime, str, None]) -> date:
    """
    Parse a stored birth date.

    Accepts date and datetime objects, and ISO-8601 strings with or
    without a time part ('1945-03-15', '1945-03-15T00:00:00').

    Args:
        value: Value as stored

    Returns:
        The calendar date

    Raises:
        InvalidBirthDate: If the value is missing or unparsable
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidBirthDate(f"Missing birth date: {value!r}")

    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError as e:
        raise InvalidBirthDate(f"Unparsable birth date {value!r}: {e}") from e


def validate_records(
    records: Iterable[CitizenRecord]
) -> Tuple[List[CitizenRecord], List[DataQualityWarning]]:
    """
    Parse birth dates and split out records that cannot be scored.

    Order of the valid records is preserved.

    Args:
        records: Records as fetched from the store

    Returns:
        (records with parsed birth dates, warnings for excluded records)
    """
    valid = []
    warnings = []

    for record in records:
        try:
            birth_date = parse_birth_date(record.birth_date)
        except InvalidBirthDate as e:
            warning = DataQualityWarning(
                record_id=record.id,
                field='birth_date',
                value=str(record.birth_date),
                message=str(e),
            )
            logger.warning(f"Excluding record from duplicate scan: {warning}")
            warnings.append(warning)
            continue

        if birth_date != record.birth_date:
            record = replace(record, birth_date=birth_date)
        valid.append(record)

    return valid, warnings
