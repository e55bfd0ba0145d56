"""
Scan lifecycle for the duplicate check.

Each scan fetches a complete snapshot of both partitions, validates it,
runs the scanner and resolves address names for display. The previous
result is replaced wholesale, whether the new scan succeeds or not.

Readers always see one complete result snapshot: the previous result stays
in place while a scan runs, and when scans overlap only the one started
last is kept.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .config import MatchConfig
from .core.address import AddressKind
from .matching.matcher import (
    DuplicateScanner,
    MatchCandidate,
    ScanCancelled,
    ScanConfiguration,
    ScanStatistics,
)
from .matching.presenter import AddressDirectory, MatchDetail, MatchPage, describe, paginate
from .store.adapter import StatusFilter, StoreError
from .validation.date_validator import DataQualityWarning, validate_records

logger = logging.getLogger(__name__)


class ScanStatus(Enum):
    """Outcome of a scan."""
    COMPLETED = 'completed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class ScanResult:
    """Immutable snapshot of one scan.

    Only completed scans carry matches; failed and cancelled scans are
    always empty.
    """

    status: ScanStatus
    config: ScanConfiguration
    matches: Tuple[MatchCandidate, ...] = ()
    statistics: ScanStatistics = field(default_factory=ScanStatistics)
    warnings: Tuple[DataQualityWarning, ...] = ()
    addresses: AddressDirectory = field(default_factory=AddressDirectory)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ScanStatus.COMPLETED

    def find(self, pending_id: int, reference_id: int) -> MatchCandidate:
        """Look up a match by its record ids.

        Raises:
            KeyError: If the pair is not in this result
        """
        for candidate in self.matches:
            if candidate.key == (pending_id, reference_id):
                return candidate
        raise KeyError((pending_id, reference_id))


class DuplicateCheckService:
    """
    Runs duplicate scans against a registry store and serves the results.

    The store must provide fetch_citizens(StatusFilter) and
    fetch_address_names(AddressKind, codes).
    """

    def __init__(self, store, config: Optional[MatchConfig] = None):
        self.store = store
        self.config = config or MatchConfig()
        self.scanner = DuplicateScanner()
        self._lock = threading.Lock()
        self._result: Optional[ScanResult] = None
        self._last_scan_config: Optional[ScanConfiguration] = None
        self._generation = 0

    @property
    def last_result(self) -> Optional[ScanResult]:
        """The held result snapshot, None before the first scan finishes."""
        with self._lock:
            return self._result

    def scan(
        self,
        min_confidence: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ScanResult:
        """
        Run a full scan and replace the previous result.

        Args:
            min_confidence: Threshold override (50-95, step 5)
            cancel_event: Set to abandon the scan

        Returns:
            The new result; check result.ok before using the matches

        Raises:
            ValueError: If min_confidence is not a valid threshold
        """
        scan_config = self.config.scan_configuration(min_confidence)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._last_scan_config = scan_config

        try:
            result = self._run(scan_config, cancel_event)
        except StoreError as e:
            logger.exception(f"Duplicate scan aborted: {e}")
            result = ScanResult(status=ScanStatus.FAILED, config=scan_config, error=str(e))
        except ScanCancelled:
            logger.info("Duplicate scan cancelled")
            result = ScanResult(
                status=ScanStatus.CANCELLED, config=scan_config, error="Scan cancelled"
            )

        # Only the most recently started scan may replace the held result
        with self._lock:
            if generation == self._generation:
                self._result = result
            else:
                logger.info(
                    f"Discarding result of superseded scan "
                    f"(min confidence {scan_config.min_confidence})"
                )
        return result

    def refresh(self, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """Re-run the scan with the last threshold used."""
        with self._lock:
            last_config = self._last_scan_config
        min_confidence = last_config.min_confidence if last_config else None
        return self.scan(min_confidence, cancel_event)

    def get_page(self, page: int = 1, page_size: Optional[int] = None) -> MatchPage:
        """
        One page of the last scan's ranked matches.

        Raises:
            RuntimeError: If no scan has been run yet
            ValueError: If page or page_size is below 1
        """
        result = self._require_result()
        return paginate(
            result.matches,
            page=page,
            page_size=page_size or self.config.page_size,
            addresses=result.addresses,
        )

    def get_match(self, pending_id: int, reference_id: int) -> MatchDetail:
        """
        Full breakdown of one match from the last scan.

        Raises:
            RuntimeError: If no scan has been run yet
            KeyError: If the pair is not among the matches
        """
        result = self._require_result()
        return describe(result.find(pending_id, reference_id), result.addresses)

    def _require_result(self) -> ScanResult:
        with self._lock:
            result = self._result
        if result is None:
            raise RuntimeError("No duplicate scan has been run")
        return result

    def _run(
        self,
        scan_config: ScanConfiguration,
        cancel_event: Optional[threading.Event],
    ) -> ScanResult:
        # Both partitions are fetched in full before anything is compared
        pending_rows = self.store.fetch_citizens(StatusFilter.ENCODED)
        reference_rows = self.store.fetch_citizens(StatusFilter.NOT_ENCODED)

        pending, pending_warnings = validate_records(pending_rows)
        reference, reference_warnings = validate_records(reference_rows)
        warnings = tuple(pending_warnings + reference_warnings)
        if warnings:
            logger.warning(f"{len(warnings)} records excluded from the scan")

        matches, statistics = self.scanner.scan(pending, reference, scan_config, cancel_event)
        statistics.excluded_count = len(warnings)

        addresses = self._resolve_addresses(matches)

        return ScanResult(
            status=ScanStatus.COMPLETED,
            config=scan_config,
            matches=tuple(matches),
            statistics=statistics,
            warnings=warnings,
            addresses=addresses,
        )

    def _resolve_addresses(self, matches: List[MatchCandidate]) -> AddressDirectory:
        """Fetch display names for every address code used by the matches."""
        if not matches:
            return AddressDirectory()

        records = [m.pending for m in matches] + [m.reference for m in matches]
        names: Dict[AddressKind, Dict[str, str]] = {}
        unresolved = 0
        for kind, codes in AddressDirectory.codes_for(records).items():
            names[kind] = self.store.fetch_address_names(kind, codes) if codes else {}
            unresolved += len(codes - set(names[kind]))

        if unresolved:
            logger.debug(f"{unresolved} address codes have no name, showing raw codes")
        return AddressDirectory(names)
