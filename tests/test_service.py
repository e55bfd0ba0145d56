"""Tests for the scan lifecycle."""

import threading
from datetime import date

import pytest

from citizenmatch.config import MatchConfig
from citizenmatch.core.address import AddressKind
from citizenmatch.service import DuplicateCheckService, ScanStatus
from citizenmatch.store import CitizenStore, StatusFilter
from conftest import FakeStore, make_citizen


@pytest.fixture
def service(registry_db):
    store = CitizenStore(registry_db)
    yield DuplicateCheckService(store, MatchConfig(database_path=registry_db))
    store.close()


def pair_store(**kwargs):
    citizens = [
        make_citizen(1, barangay_code='B1', province_code='P1'),
        make_citizen(2, status='Validated', barangay_code='B2', province_code='P1'),
    ]
    addresses = {
        AddressKind.PROVINCE: {'P1': 'Pampanga'},
        AddressKind.BARANGAY: {'B1': 'Sto. Nino'},
    }
    return FakeStore(citizens, addresses, **kwargs)


class TestScan:

    def test_scan_registry(self, service):
        result = service.scan()

        assert result.status is ScanStatus.COMPLETED
        assert result.ok
        assert [m.key for m in result.matches] == [(4, 5), (1, 2), (7, 2), (1, 3), (7, 3)]
        assert [m.confidence_score for m in result.matches] == [100, 100, 97, 86, 83]

    def test_statistics(self, service):
        stats = service.scan().statistics

        assert stats.pending_count == 3
        assert stats.reference_count == 4
        assert stats.excluded_count == 1
        assert stats.total_records == 8
        assert stats.comparisons == 5

    def test_malformed_birth_date_reported(self, service):
        result = service.scan()

        assert [w.record_id for w in result.warnings] == [8]
        assert all(8 not in m.key for m in result.matches)

    def test_threshold_override(self, service):
        result = service.scan(min_confidence=95)

        assert [m.key for m in result.matches] == [(4, 5), (1, 2), (7, 2)]
        assert result.config.min_confidence == 95

    def test_invalid_threshold(self, service):
        with pytest.raises(ValueError):
            service.scan(min_confidence=72)

    def test_no_pending_records(self):
        store = FakeStore([make_citizen(1, status='Paid')])

        result = DuplicateCheckService(store).scan()

        assert result.ok
        assert result.matches == ()

    def test_fetch_failure_reports_failed(self, caplog):
        store = pair_store(fail_on=StatusFilter.NOT_ENCODED)

        result = DuplicateCheckService(store).scan()

        assert result.status is ScanStatus.FAILED
        assert not result.ok
        assert result.matches == ()
        assert 'fetch failed' in result.error
        assert 'Duplicate scan aborted' in caplog.text

    def test_address_failure_reports_failed(self):
        store = pair_store(fail_on=AddressKind.BARANGAY)

        result = DuplicateCheckService(store).scan()

        assert result.status is ScanStatus.FAILED
        assert result.matches == ()

    def test_failure_discards_previous_result(self):
        """Test that a failed rescan never leaves stale matches behind."""
        store = pair_store()
        service = DuplicateCheckService(store)
        assert len(service.scan().matches) == 1

        store.fail_on = StatusFilter.ENCODED
        result = service.scan()

        assert service.last_result is result
        assert result.matches == ()
        assert service.get_page().total_items == 0

    def test_cancelled_scan(self):
        cancel = threading.Event()
        cancel.set()
        service = DuplicateCheckService(pair_store())

        result = service.scan(cancel_event=cancel)

        assert result.status is ScanStatus.CANCELLED
        assert result.matches == ()

    def test_fetches_both_partitions_before_addresses(self):
        store = pair_store()

        DuplicateCheckService(store).scan()

        assert store.calls[:2] == [
            ('fetch_citizens', StatusFilter.ENCODED),
            ('fetch_citizens', StatusFilter.NOT_ENCODED),
        ]
        # No record carries an LGU code, so that level is never queried
        assert [call[1] for call in store.calls[2:]] == [
            AddressKind.PROVINCE, AddressKind.BARANGAY,
        ]

    def test_no_address_lookup_without_matches(self):
        store = FakeStore([make_citizen(1), make_citizen(2, 'Villanueva', 'Pedro',
                                                         birth_date=date(1938, 11, 30),
                                                         status='Paid')])

        DuplicateCheckService(store).scan(min_confidence=90)

        assert all(call[0] == 'fetch_citizens' for call in store.calls)


class TestRefresh:

    def test_refresh_reuses_last_threshold(self, service):
        service.scan(min_confidence=95)

        result = service.refresh()

        assert result.config.min_confidence == 95
        assert len(result.matches) == 3

    def test_refresh_without_previous_scan(self, service):
        result = service.refresh()

        assert result.config.min_confidence == 70

    def test_refresh_sees_new_data(self):
        store = pair_store()
        service = DuplicateCheckService(store)
        service.scan()

        store.citizens.append(make_citizen(3, 'Santos', 'Marie', status='Paid'))
        result = service.refresh()

        assert [m.key for m in result.matches] == [(1, 2), (1, 3)]


class TestReview:

    def test_get_page_before_scan(self, service):
        with pytest.raises(RuntimeError):
            service.get_page()

    def test_get_page(self, service):
        service.scan()

        page = service.get_page(page=1, page_size=2)

        assert [d.candidate.key for d in page.items] == [(4, 5), (1, 2)]
        assert page.total_items == 5
        assert page.total_pages == 3

    def test_get_page_uses_configured_size(self, service):
        service.scan()

        assert service.get_page().page_size == 15

    def test_address_names_resolved(self, service):
        service.scan()

        detail = service.get_match(1, 2)

        assert detail.pending.province == 'Pampanga'
        assert detail.pending.lgu == 'San Fernando'
        assert detail.pending.barangay == 'Barangay 1'

    def test_unknown_address_shows_code(self, service):
        service.scan()

        detail = service.get_match(4, 5)

        assert detail.reference.barangay == 'B9999'
        assert detail.reference.lgu == 'Malolos'

    def test_get_match_unknown_pair(self, service):
        service.scan()

        with pytest.raises(KeyError):
            service.get_match(1, 6)

    def test_get_match_before_scan(self, service):
        with pytest.raises(RuntimeError):
            service.get_match(1, 2)


class TestConcurrentScans:

    def test_latest_scan_wins(self):
        """Test that a slow earlier scan cannot overwrite a newer result."""
        store = pair_store()
        service = DuplicateCheckService(store)
        store.hold = True
        slow = threading.Thread(target=service.scan, args=(50,))
        slow.start()
        assert store.entered.wait(5)

        try:
            newer = service.scan(95)
        finally:
            store.release.set()
            slow.join(5)

        assert not slow.is_alive()
        assert service.last_result is newer
        assert service.last_result.config.min_confidence == 95

    def test_reads_during_refresh_use_previous_result(self):
        store = pair_store()
        service = DuplicateCheckService(store)
        first = service.scan()
        store.hold = True
        worker = threading.Thread(target=service.refresh)
        worker.start()
        assert store.entered.wait(5)

        try:
            page = service.get_page()
            detail = service.get_match(1, 2)
            held = service.last_result
        finally:
            store.release.set()
            worker.join(5)

        assert held is first
        assert page.total_items == 1
        assert detail.confidence_score == 100
        assert service.last_result is not first
        assert service.last_result.ok
