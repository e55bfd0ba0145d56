"""
Duplicate scanner for pending citizen records.

Compares every pending ("Encoded") record against every reference record
and keeps the pairs whose confidence reaches the configured threshold.
Pending records are never compared with each other, and neither are
reference records.
"""

import logging
import threading
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import repeat
from typing import Iterable, List, Optional, Sequence, Tuple

from ..core.citizen import CitizenRecord
from .blocking import BirthDateBlocker, required_birth_matches
from .scorer import ConfidenceModel, ConfidenceTier, FieldScores

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 50
MAX_THRESHOLD = 95
THRESHOLD_STEP = 5


class ScanCancelled(Exception):
    """Raised when a scan is cancelled before it completes."""


@dataclass(frozen=True, slots=True)
class ScanConfiguration:
    """Settings for one scan.

    Attributes:
        min_confidence: Threshold in [50, 95], multiple of 5
        use_blocking: Skip pairs that cannot reach the threshold
        max_workers: Processes used to score shards of pending records
    """

    min_confidence: int = 70
    use_blocking: bool = True
    max_workers: int = 1

    def __post_init__(self):
        value = self.min_confidence
        if (
            isinstance(value, bool)
            or not isinstance(value, int)
            or not MIN_THRESHOLD <= value <= MAX_THRESHOLD
            or value % THRESHOLD_STEP
        ):
            raise ValueError(
                f"min_confidence must be between {MIN_THRESHOLD} and {MAX_THRESHOLD} "
                f"in steps of {THRESHOLD_STEP}, got {value!r}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """A pending record that may duplicate a reference record."""
    pending: CitizenRecord
    reference: CitizenRecord
    confidence_score: int
    field_scores: FieldScores

    @property
    def key(self) -> Tuple[int, int]:
        """(pending id, reference id)"""
        return (self.pending.id, self.reference.id)

    @property
    def confidence_tier(self) -> ConfidenceTier:
        return ConfidenceTier.for_score(self.confidence_score)


@dataclass
class ScanStatistics:
    """Counters collected during a scan."""
    pending_count: int = 0
    reference_count: int = 0
    excluded_count: int = 0
    comparisons: int = 0
    skipped_by_blocking: int = 0
    match_count: int = 0
    elapsed_seconds: float = 0.0

    @property
    def total_records(self) -> int:
        return self.pending_count + self.reference_count + self.excluded_count


def partition_records(
    records: Iterable[CitizenRecord]
) -> Tuple[List[CitizenRecord], List[CitizenRecord]]:
    """
    Split records into (pending, reference), each ordered by last name
    then first name.
    """
    pending = []
    reference = []
    for record in records:
        (pending if record.is_pending else reference).append(record)

    def sort_key(record):
        return (record.last_name or '', record.first_name or '')

    pending.sort(key=sort_key)
    reference.sort(key=sort_key)
    return pending, reference


def _scan_shard(
    shard: Sequence[CitizenRecord],
    blocker: BirthDateBlocker,
    min_confidence: int,
    min_birth_matches: int,
    cancel_event: Optional[threading.Event] = None,
) -> Tuple[List[MatchCandidate], int]:
    """Score one contiguous run of pending records.

    Returns the surviving candidates in production order and the number of
    pairs scored.
    """
    model = ConfidenceModel()
    matches = []
    comparisons = 0

    for pending in shard:
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelled("Scan cancelled")

        for _, reference in blocker.candidates(pending, min_birth_matches):
            comparisons += 1
            confidence, field_scores = model.score(pending, reference)
            if confidence >= min_confidence:
                matches.append(MatchCandidate(
                    pending=pending,
                    reference=reference,
                    confidence_score=confidence,
                    field_scores=field_scores,
                ))

    return matches, comparisons


class DuplicateScanner:
    """
    Finds likely duplicates between the pending and reference partitions.

    Birth dates must already be parsed (see validation.validate_records).
    """

    SHARDS_PER_WORKER = 4

    def scan(
        self,
        pending: Sequence[CitizenRecord],
        reference: Sequence[CitizenRecord],
        config: ScanConfiguration,
        cancel_event: Optional[threading.Event] = None,
    ) -> Tuple[List[MatchCandidate], ScanStatistics]:
        """
        Score every pending x reference pair and rank the survivors.

        Args:
            pending: Records with status 'Encoded', in scan order
            reference: All other records, in scan order
            config: Threshold and execution settings
            cancel_event: Set to abandon the scan

        Returns:
            (candidates sorted by confidence, highest first; statistics).
            Equal scores keep the order in which pairs were produced.

        Raises:
            ValueError: If a record sits in the wrong partition
            ScanCancelled: If cancel_event was set before completion
        """
        started = time.perf_counter()
        stats = ScanStatistics(pending_count=len(pending), reference_count=len(reference))

        for record in pending:
            if not record.is_pending:
                raise ValueError(f"Reference record {record.id} passed as pending")
        for record in reference:
            if record.is_pending:
                raise ValueError(f"Pending record {record.id} passed as reference")

        if not pending or not reference:
            logger.info("Nothing to compare: one of the partitions is empty")
            stats.elapsed_seconds = time.perf_counter() - started
            return [], stats

        min_birth_matches = (
            required_birth_matches(config.min_confidence) if config.use_blocking else 0
        )
        blocker = BirthDateBlocker(reference)

        logger.info(
            f"Scanning {len(pending)} pending against {len(reference)} reference records "
            f"(min confidence {config.min_confidence}, "
            f"birth components required {min_birth_matches})"
        )

        if config.max_workers > 1 and len(pending) > 1:
            matches, comparisons = self._scan_parallel(
                pending, blocker, config, min_birth_matches, cancel_event
            )
        else:
            matches, comparisons = _scan_shard(
                pending, blocker, config.min_confidence, min_birth_matches, cancel_event
            )

        # list.sort is stable, ties keep production order
        matches.sort(key=lambda m: m.confidence_score, reverse=True)

        stats.comparisons = comparisons
        stats.skipped_by_blocking = len(pending) * len(reference) - comparisons
        stats.match_count = len(matches)
        stats.elapsed_seconds = time.perf_counter() - started

        logger.info(
            f"Scan finished: {stats.match_count} matches from {stats.comparisons} comparisons "
            f"({stats.skipped_by_blocking} skipped) in {stats.elapsed_seconds:.2f}s"
        )
        return matches, stats

    def _scan_parallel(
        self,
        pending: Sequence[CitizenRecord],
        blocker: BirthDateBlocker,
        config: ScanConfiguration,
        min_birth_matches: int,
        cancel_event: Optional[threading.Event],
    ) -> Tuple[List[MatchCandidate], int]:
        """Score contiguous shards in a process pool, merged in shard order.

        Worker processes cannot see cancel_event, so cancellation here takes
        effect between shard results: the scan stops when the next shard
        finishes, and shards not yet started are dropped.
        """
        shard_count = min(len(pending), config.max_workers * self.SHARDS_PER_WORKER)
        shard_size = -(-len(pending) // shard_count)
        shards = [
            list(pending[start:start + shard_size])
            for start in range(0, len(pending), shard_size)
        ]
        logger.debug(f"Scoring {len(shards)} shards with {config.max_workers} workers")

        matches = []
        comparisons = 0
        executor = ProcessPoolExecutor(max_workers=config.max_workers)
        try:
            results = executor.map(
                _scan_shard,
                shards,
                repeat(blocker),
                repeat(config.min_confidence),
                repeat(min_birth_matches),
            )
            for shard_matches, shard_comparisons in results:
                if cancel_event is not None and cancel_event.is_set():
                    raise ScanCancelled("Scan cancelled")
                matches.extend(shard_matches)
                comparisons += shard_comparisons
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return matches, comparisons
