"""Read-only adapter for the citizen registry database."""

import logging
import sqlite3
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..core.address import AddressKind
from ..core.citizen import CitizenRecord, PENDING_STATUS

logger = logging.getLogger(__name__)

# Largest number of rows the backend returns for one query
DEFAULT_PAGE_SIZE = 1000

CITIZEN_COLUMNS = (
    'id, last_name, first_name, middle_name, extension_name, birth_date, '
    'status, province_code, lgu_code, barangay_code'
)


class StoreError(Exception):
    """Raised when the registry cannot be read."""


class StatusFilter(Enum):
    """Which side of the pending/reference split to fetch."""
    ENCODED = 'Encoded'
    NOT_ENCODED = 'NotEncoded'


class CitizenStore:
    """Adapter for reading the citizen registry from a SQLite database.

    This class handles:
    - SQLite connection management
    - Fetching the pending and reference partitions
    - Paged retrieval of address names
    """

    def __init__(self, db_path: str | Path, page_size: int = DEFAULT_PAGE_SIZE):
        """Open the registry database.

        Args:
            db_path: Path to the SQLite database file
            page_size: Row cap applied to each address-name query
        """
        self.db_path = Path(db_path)
        if not self.db_path.exists():
            raise FileNotFoundError(f"Database not found: {self.db_path}")
        if page_size < 1:
            raise ValueError(f"page_size must be 1 or greater, got {page_size}")

        self.page_size = page_size
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        if self.conn is None:
            raise StoreError("Database connection is closed")
        try:
            cursor = self.conn.execute(sql, params)
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Query failed: {e}") from e

    # ========== Citizen Methods ==========

    def fetch_citizens(self, status_filter: StatusFilter) -> List[CitizenRecord]:
        """Fetch one partition of the registry.

        Args:
            status_filter: ENCODED for pending records, NOT_ENCODED for the rest

        Returns:
            Records ordered by last name, then first name
        """
        operator = '=' if status_filter is StatusFilter.ENCODED else '!='
        rows = self._query(f"""
            SELECT {CITIZEN_COLUMNS} FROM citizens
            WHERE status {operator} ?
            ORDER BY last_name, first_name, id
        """, (PENDING_STATUS,))

        records = [self._row_to_citizen(row) for row in rows]
        logger.debug(f"Fetched {len(records)} {status_filter.value} citizens")
        return records

    # ========== Address Methods ==========

    def fetch_address_names(
        self,
        kind: AddressKind,
        codes: Optional[Iterable[str]] = None
    ) -> Dict[str, str]:
        """Map address codes to display names.

        Reads the whole table in pages of page_size rows, stopping at the
        first short page, then keeps the requested codes.

        Args:
            kind: Address level to read
            codes: Codes to resolve, or None for all of them

        Returns:
            Dictionary of code -> name
        """
        names = {}
        offset = 0

        while True:
            rows = self._query(f"""
                SELECT code, name FROM {kind.table}
                ORDER BY code
                LIMIT ? OFFSET ?
            """, (self.page_size, offset))

            for row in rows:
                names[row['code']] = row['name']

            if len(rows) < self.page_size:
                break
            offset += self.page_size

        logger.debug(f"Loaded {len(names)} {kind.table} names")

        if codes is None:
            return names
        wanted = set(codes)
        return {code: name for code, name in names.items() if code in wanted}

    # ========== Statistics Methods ==========

    def get_stats(self) -> Dict[str, int]:
        """Get row counts for the registry tables."""
        stats = {}
        tables = [
            ('citizens', 'citizens'),
            ('pending', "citizens WHERE status = 'Encoded'"),
            ('provinces', AddressKind.PROVINCE.table),
            ('lgus', AddressKind.LGU.table),
            ('barangays', AddressKind.BARANGAY.table),
        ]
        for name, source in tables:
            stats[name] = self._query(f"SELECT COUNT(*) FROM {source}")[0][0]
        return stats

    # ========== Helper Methods ==========

    def _row_to_citizen(self, row: sqlite3.Row) -> CitizenRecord:
        """Convert database row to CitizenRecord object."""
        return CitizenRecord(
            id=row['id'],
            last_name=row['last_name'],
            first_name=row['first_name'],
            middle_name=row['middle_name'],
            extension_name=row['extension_name'],
            birth_date=row['birth_date'],
            status=row['status'],
            province_code=row['province_code'],
            lgu_code=row['lgu_code'],
            barangay_code=row['barangay_code'],
        )
