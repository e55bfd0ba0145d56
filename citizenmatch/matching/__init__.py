"""
Duplicate detection matching engine.

Scores pending citizen records against verified ones on name similarity
and birth date components, and ranks the likely duplicates for review.
"""

from .blocking import BirthDateBlocker, required_birth_matches
from .matcher import (
    DuplicateScanner,
    MatchCandidate,
    ScanCancelled,
    ScanConfiguration,
    ScanStatistics,
    partition_records,
)
from .presenter import AddressDirectory, MatchDetail, MatchPage, RecordView, describe, paginate
from .scorer import ConfidenceModel, ConfidenceTier, FieldScores
from .similarity import edit_distance, similarity

__all__ = [
    'AddressDirectory',
    'BirthDateBlocker',
    'ConfidenceModel',
    'ConfidenceTier',
    'DuplicateScanner',
    'FieldScores',
    'MatchCandidate',
    'MatchDetail',
    'MatchPage',
    'RecordView',
    'ScanCancelled',
    'ScanConfiguration',
    'ScanStatistics',
    'describe',
    'edit_distance',
    'paginate',
    'partition_records',
    'required_birth_matches',
    'similarity',
]
