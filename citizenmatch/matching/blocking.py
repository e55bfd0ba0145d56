"""
Exact blocking on birth date components.

Name fields can contribute at most 4/7 of the confidence score, so a pair
needs a minimum number of matching birth components (month, day, year) to
reach a given threshold at all. Indexing the reference partition by those
components lets the scanner skip pairs that cannot possibly survive,
without ever dropping one that could.
"""

from collections import Counter, defaultdict
from typing import Dict, Iterator, List, Sequence, Tuple

from ..core.citizen import CitizenRecord
from .scorer import BIRTH_FIELDS, ConfidenceModel


def required_birth_matches(min_confidence: int) -> int:
    """
    Minimum number of matching birth components a pair needs to reach
    min_confidence.

    Returns 4 when no pair can reach the threshold.
    """
    for matches in range(len(BIRTH_FIELDS) + 1):
        if ConfidenceModel.best_possible_score(matches) >= min_confidence:
            return matches
    return len(BIRTH_FIELDS) + 1


class BirthDateBlocker:
    """Index of reference records by birth month, day and year."""

    def __init__(self, reference: Sequence[CitizenRecord]):
        self.reference = reference
        self._by_month: Dict[int, List[int]] = defaultdict(list)
        self._by_day: Dict[int, List[int]] = defaultdict(list)
        self._by_year: Dict[int, List[int]] = defaultdict(list)

        for index, record in enumerate(reference):
            self._by_month[record.birth_date.month].append(index)
            self._by_day[record.birth_date.day].append(index)
            self._by_year[record.birth_date.year].append(index)

    def candidates(
        self,
        pending: CitizenRecord,
        min_birth_matches: int
    ) -> Iterator[Tuple[int, CitizenRecord]]:
        """
        Yield (index, reference record) pairs worth scoring for a pending
        record, in reference order.

        Args:
            pending: Record awaiting verification
            min_birth_matches: Matching birth components required (0-4)
        """
        if min_birth_matches <= 0:
            yield from enumerate(self.reference)
            return
        if min_birth_matches > len(BIRTH_FIELDS):
            return

        birth = pending.birth_date
        hits = Counter()
        hits.update(self._by_month.get(birth.month, ()))
        hits.update(self._by_day.get(birth.day, ()))
        hits.update(self._by_year.get(birth.year, ()))

        for index in sorted(i for i, count in hits.items() if count >= min_birth_matches):
            yield index, self.reference[index]
