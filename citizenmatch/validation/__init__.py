"""
Validation of citizen data before matching.
"""

from .date_validator import (
    DataQualityWarning,
    InvalidBirthDate,
    parse_birth_date,
    validate_records,
)

__all__ = [
    'DataQualityWarning',
    'InvalidBirthDate',
    'parse_birth_date',
    'validate_records',
]
