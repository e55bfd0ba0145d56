"""
Presentation of scan results for human review.

Pagination and address-name enrichment only; nothing here changes a
confidence score or the ranking.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from ..core.address import AddressKind
from ..core.citizen import CitizenRecord
from .matcher import MatchCandidate

DEFAULT_PAGE_SIZE = 15


@dataclass(frozen=True)
class AddressDirectory:
    """Resolved address names, keyed by level and code."""
    names: Mapping[AddressKind, Mapping[str, str]] = field(default_factory=dict)

    def resolve(self, kind: AddressKind, code: Optional[str]) -> str:
        """Display name for a code, or the code itself when unresolved."""
        if not code:
            return ''
        return self.names.get(kind, {}).get(code) or code

    @staticmethod
    def codes_for(records: Iterable[CitizenRecord]) -> Dict[AddressKind, set]:
        """Collect the address codes referenced by records."""
        codes = {kind: set() for kind in AddressKind}
        for record in records:
            if record.province_code:
                codes[AddressKind.PROVINCE].add(record.province_code)
            if record.lgu_code:
                codes[AddressKind.LGU].add(record.lgu_code)
            if record.barangay_code:
                codes[AddressKind.BARANGAY].add(record.barangay_code)
        return codes


@dataclass(frozen=True, slots=True)
class RecordView:
    """A citizen record as shown to a reviewer."""
    id: int
    display_name: str
    birth_date: str
    status: str
    province: str
    lgu: str
    barangay: str

    @property
    def location(self) -> str:
        """'Barangay, LGU' line used in the detail view."""
        return ', '.join(part for part in (self.barangay, self.lgu) if part)


@dataclass(frozen=True, slots=True)
class MatchDetail:
    """A match with both records enriched for display."""
    candidate: MatchCandidate
    pending: RecordView
    reference: RecordView

    @property
    def confidence_score(self) -> int:
        return self.candidate.confidence_score

    @property
    def confidence_label(self) -> str:
        return self.candidate.confidence_tier.value

    @property
    def field_scores(self) -> dict:
        return self.candidate.field_scores.as_dict()


@dataclass(frozen=True, slots=True)
class MatchPage:
    """One page of ranked matches."""
    items: Tuple[MatchDetail, ...]
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return -(-self.total_items // self.page_size)

    @property
    def start_index(self) -> int:
        """1-based position of the first item, 0 for an empty page."""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def end_index(self) -> int:
        """1-based position of the last item, 0 for an empty page."""
        return self.start_index + len(self.items) - 1 if self.items else 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def format_birth_date(value) -> str:
    """Format a birth date as 'Mar 15, 1945'."""
    if isinstance(value, date):
        return value.strftime('%b %d, %Y')
    return str(value or '')


def make_record_view(record: CitizenRecord, addresses: AddressDirectory) -> RecordView:
    return RecordView(
        id=record.id,
        display_name=record.display_name(),
        birth_date=format_birth_date(record.birth_date),
        status=record.status,
        province=addresses.resolve(AddressKind.PROVINCE, record.province_code),
        lgu=addresses.resolve(AddressKind.LGU, record.lgu_code),
        barangay=addresses.resolve(AddressKind.BARANGAY, record.barangay_code),
    )


def describe(candidate: MatchCandidate, addresses: Optional[AddressDirectory] = None) -> MatchDetail:
    """Enrich a candidate for display."""
    addresses = addresses or AddressDirectory()
    return MatchDetail(
        candidate=candidate,
        pending=make_record_view(candidate.pending, addresses),
        reference=make_record_view(candidate.reference, addresses),
    )


def paginate(
    matches: Sequence[MatchCandidate],
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    addresses: Optional[AddressDirectory] = None,
) -> MatchPage:
    """
    Slice one page out of the ranked matches.

    Args:
        matches: Candidates in ranked order
        page: Page number, starting at 1
        page_size: Items per page
        addresses: Names used to enrich the records

    Returns:
        The page; empty when page is past the end

    Raises:
        ValueError: If page or page_size is below 1
    """
    if page < 1:
        raise ValueError(f"page must be 1 or greater, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be 1 or greater, got {page_size}")

    start = (page - 1) * page_size
    items = tuple(describe(m, addresses) for m in matches[start:start + page_size])
    return MatchPage(items=items, page=page, page_size=page_size, total_items=len(matches))
