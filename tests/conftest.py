"""Shared fixtures: a small registry database and record builders."""

import sqlite3
import threading
from datetime import date

import pytest

from citizenmatch.core.citizen import CitizenRecord
from citizenmatch.store.adapter import StatusFilter, StoreError

SCHEMA = """
CREATE TABLE citizens (
    id INTEGER PRIMARY KEY,
    last_name TEXT NOT NULL,
    first_name TEXT NOT NULL,
    middle_name TEXT,
    extension_name TEXT,
    birth_date TEXT,
    status TEXT NOT NULL,
    province_code TEXT,
    lgu_code TEXT,
    barangay_code TEXT
);
CREATE TABLE provinces (code TEXT PRIMARY KEY, name TEXT NOT NULL);
CREATE TABLE lgus (code TEXT PRIMARY KEY, name TEXT NOT NULL);
CREATE TABLE barangays (code TEXT PRIMARY KEY, name TEXT NOT NULL);
"""

CITIZENS = [
    # id, last, first, middle, ext, birth, status, province, lgu, barangay
    (1, 'Santos', 'Maria', None, None, '1945-03-15', 'Encoded', 'P01', 'L01', 'B0001'),
    (2, 'Santos', 'Maria', None, None, '1945-03-15', 'Validated', 'P01', 'L01', 'B0002'),
    (3, 'Santos', 'Maria', None, None, '1945-03-16', 'Paid', 'P01', 'L02', 'B0003'),
    (4, 'Reyes', 'Juan', 'Dela', 'Jr', '1950-07-04', 'Encoded', 'P02', 'L03', 'B0004'),
    (5, 'Reyes', 'Juan', 'Dela', 'Jr.', '1950-07-04', 'Cleanlisted', 'P02', 'L03', 'B9999'),
    (6, 'Villanueva', 'Pedro', 'Cruz', None, '1938-11-30', 'Validated', 'P03', 'L04', 'B0005'),
    (7, 'Santos', 'Mario', None, None, '1945-03-15', 'Encoded', 'P01', 'L01', 'B0001'),
    (8, 'Garcia', 'Ana', None, None, 'not-a-date', 'Encoded', 'P01', 'L01', 'B0001'),
]

PROVINCES = [('P01', 'Pampanga'), ('P02', 'Bulacan'), ('P03', 'Tarlac')]
LGUS = [('L01', 'San Fernando'), ('L02', 'Angeles'), ('L03', 'Malolos'), ('L04', 'Capas')]


def create_registry(path, citizens=CITIZENS, barangay_count=5):
    """Write a registry database with the given citizens."""
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA)
    conn.executemany("INSERT INTO citizens VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)", citizens)
    conn.executemany("INSERT INTO provinces VALUES (?, ?)", PROVINCES)
    conn.executemany("INSERT INTO lgus VALUES (?, ?)", LGUS)
    conn.executemany(
        "INSERT INTO barangays VALUES (?, ?)",
        [(f'B{i:04d}', f'Barangay {i}') for i in range(1, barangay_count + 1)],
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def registry_db(tmp_path):
    """Registry database with a handful of citizens."""
    return create_registry(tmp_path / 'registry.db')


def make_citizen(
    id,
    last_name='Santos',
    first_name='Maria',
    middle_name=None,
    extension_name=None,
    birth_date=date(1945, 3, 15),
    status='Encoded',
    **kwargs
):
    """Build a CitizenRecord with sensible defaults."""
    return CitizenRecord(
        id=id,
        last_name=last_name,
        first_name=first_name,
        middle_name=middle_name,
        extension_name=extension_name,
        birth_date=birth_date,
        status=status,
        **kwargs
    )


class FakeStore:
    """In-memory store that records calls and can be told to fail.

    Setting hold makes the next fetch_citizens call set entered and then
    block until release is set.
    """

    def __init__(self, citizens=(), addresses=None, fail_on=None):
        self.citizens = list(citizens)
        self.addresses = addresses or {}
        self.fail_on = fail_on
        self.calls = []
        self.hold = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_citizens(self, status_filter):
        self.calls.append(('fetch_citizens', status_filter))
        if self.hold:
            self.hold = False
            self.entered.set()
            self.release.wait(5)
        if self.fail_on == status_filter:
            raise StoreError(f"{status_filter.value} fetch failed")
        pending = status_filter is StatusFilter.ENCODED
        records = [c for c in self.citizens if c.is_pending == pending]
        return sorted(records, key=lambda c: (c.last_name, c.first_name, c.id))

    def fetch_address_names(self, kind, codes):
        self.calls.append(('fetch_address_names', kind))
        if self.fail_on == kind:
            raise StoreError(f"{kind.value} fetch failed")
        names = self.addresses.get(kind, {})
        return {code: name for code, name in names.items() if code in codes}
