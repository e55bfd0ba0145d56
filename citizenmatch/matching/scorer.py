"""
Field confidence model for citizen record pairs.

Seven fields are scored independently and weighted equally:
four name fields by edit-distance similarity, and the birth month, day
and year by exact match.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..core.citizen import CitizenRecord
from ..utils.name_cleaner import normalize
from .similarity import similarity

NAME_FIELDS = ('last_name', 'first_name', 'middle_name', 'extension_name')
BIRTH_FIELDS = ('birth_month', 'birth_day', 'birth_year')

# Each of the seven fields carries 100/7 points
FIELD_WEIGHT = 100 / 7


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return math.floor(value + 0.5)


class ConfidenceTier(Enum):
    """Display tiers for a confidence score."""
    VERY_HIGH = 'Very High'
    HIGH = 'High'
    MEDIUM = 'Medium'
    LOW = 'Low'

    @classmethod
    def for_score(cls, score: int) -> 'ConfidenceTier':
        if score >= 90:
            return cls.VERY_HIGH
        if score >= 80:
            return cls.HIGH
        if score >= 70:
            return cls.MEDIUM
        return cls.LOW


@dataclass(frozen=True, slots=True)
class FieldScores:
    """Per-field breakdown of a pair comparison.

    Name scores are rounded independently when stored; they do not feed
    back into the confidence score, which is computed from the unrounded
    values. The displayed fields can therefore disagree with the total
    by one point.
    """

    last_name: int
    first_name: int
    middle_name: int
    extension_name: int
    birth_month_match: bool
    birth_day_match: bool
    birth_year_match: bool

    @property
    def birth_month(self) -> int:
        return 100 if self.birth_month_match else 0

    @property
    def birth_day(self) -> int:
        return 100 if self.birth_day_match else 0

    @property
    def birth_year(self) -> int:
        return 100 if self.birth_year_match else 0

    @property
    def name_score(self) -> int:
        """Unweighted mean of the four name scores (display only)."""
        return round_half_up(sum(self.name_scores()) / len(NAME_FIELDS))

    @property
    def birth_date_score(self) -> int:
        """Unweighted mean of the three birth components (display only)."""
        return round_half_up(sum(self.birth_scores()) / len(BIRTH_FIELDS))

    def name_scores(self) -> Tuple[int, int, int, int]:
        return (self.last_name, self.first_name, self.middle_name, self.extension_name)

    def birth_scores(self) -> Tuple[int, int, int]:
        return (self.birth_month, self.birth_day, self.birth_year)

    def as_dict(self) -> dict:
        """All seven field scores plus the display aggregates."""
        values = dict(zip(NAME_FIELDS + BIRTH_FIELDS, self.name_scores() + self.birth_scores()))
        values['name_score'] = self.name_score
        values['birth_date_score'] = self.birth_date_score
        return values


class ConfidenceModel:
    """
    Scores a pending record against a reference record.

    Birth dates must already be parsed into date objects
    (see validation.validate_records).
    """

    def score(
        self,
        pending: CitizenRecord,
        reference: CitizenRecord
    ) -> Tuple[int, FieldScores]:
        """
        Compute the confidence score and field breakdown for a pair.

        Args:
            pending: Record awaiting verification
            reference: Already verified record

        Returns:
            (confidence score 0-100, field scores)
        """
        name_scores = [
            similarity(normalize(getattr(pending, field)), normalize(getattr(reference, field)))
            for field in NAME_FIELDS
        ]

        birth1 = pending.birth_date
        birth2 = reference.birth_date
        month_match = birth1.month == birth2.month
        day_match = birth1.day == birth2.day
        year_match = birth1.year == birth2.year

        raw_scores = name_scores + [
            100 if month_match else 0,
            100 if day_match else 0,
            100 if year_match else 0,
        ]
        total = 0.0
        for field_score in raw_scores:
            total += field_score * FIELD_WEIGHT / 100

        field_scores = FieldScores(
            last_name=round_half_up(name_scores[0]),
            first_name=round_half_up(name_scores[1]),
            middle_name=round_half_up(name_scores[2]),
            extension_name=round_half_up(name_scores[3]),
            birth_month_match=month_match,
            birth_day_match=day_match,
            birth_year_match=year_match,
        )
        return round_half_up(total), field_scores

    @staticmethod
    def best_possible_score(birth_matches: int) -> int:
        """Highest confidence reachable with perfect names and the given
        number of matching birth components."""
        if not 0 <= birth_matches <= len(BIRTH_FIELDS):
            raise ValueError(f"birth_matches must be 0-3, got {birth_matches}")
        total = 0.0
        for field_score in [100.0] * len(NAME_FIELDS) + [100] * birth_matches:
            total += field_score * FIELD_WEIGHT / 100
        return round_half_up(total)
