"""Address hierarchy levels used for display enrichment."""

from enum import Enum


class AddressKind(Enum):
    """Levels of the address hierarchy, with the table holding their names."""
    PROVINCE = 'provinces'
    LGU = 'lgus'
    BARANGAY = 'barangays'

    @property
    def table(self) -> str:
        return self.value
