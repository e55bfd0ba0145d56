"""Citizen record projection used by the duplicate scanner."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

# Records in this state are awaiting verification
PENDING_STATUS = 'Encoded'


class CitizenStatus(Enum):
    """Lifecycle states used by the registry."""
    ENCODED = 'Encoded'
    VALIDATED = 'Validated'
    CLEANLISTED = 'Cleanlisted'
    PAID = 'Paid'
    UNPAID = 'Unpaid'
    LIQUIDATED = 'Liquidated'
    DISQUALIFIED = 'Disqualified'


@dataclass(frozen=True, slots=True)
class CitizenRecord:
    """Read-only view of one row of the citizen registry.

    Attributes:
        id: Unique record identifier
        last_name: Surname (required)
        first_name: Given name (required)
        middle_name: Middle name, None when absent
        extension_name: Suffix such as 'Jr' or 'III', None when absent
        birth_date: Birth date; the store hands over the stored value
            (usually an ISO string) and validation turns it into a date
        status: Lifecycle state; 'Encoded' marks a pending record
        province_code: Province code, display only
        lgu_code: City/municipality code, display only
        barangay_code: Barangay code, display only
    """

    id: int
    last_name: str
    first_name: str
    middle_name: Optional[str] = None
    extension_name: Optional[str] = None
    birth_date: Union[date, str, None] = None
    status: str = PENDING_STATUS
    province_code: Optional[str] = None
    lgu_code: Optional[str] = None
    barangay_code: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        """True if the record still awaits verification."""
        return self.status == PENDING_STATUS

    def display_name(self) -> str:
        """Return 'Last First Middle (Ext)' with empty parts skipped."""
        parts = [self.last_name or '', self.first_name or '', self.middle_name or '']
        name = ' '.join(part for part in parts if part.strip())
        if self.extension_name:
            name += f' ({self.extension_name})'
        return name

    def __str__(self) -> str:
        return f"{self.display_name()} [#{self.id}]"
