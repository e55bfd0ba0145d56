"""Configuration for duplicate scanning."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .matching.matcher import ScanConfiguration
from .matching.presenter import DEFAULT_PAGE_SIZE
from .store.adapter import DEFAULT_PAGE_SIZE as DEFAULT_ADDRESS_PAGE_SIZE

ENV_PREFIX = 'CITIZENMATCH_'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass
class MatchConfig:
    """Settings shared by the service, CLI and HTTP API."""

    # Registry database
    database_path: Optional[Path] = None
    address_page_size: int = DEFAULT_ADDRESS_PAGE_SIZE

    # Scan
    min_confidence: int = 70
    use_blocking: bool = True
    max_workers: int = 1

    # Review
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.database_path is not None:
            self.database_path = Path(self.database_path)
        if self.page_size < 1:
            raise ValueError(f"page_size must be 1 or greater, got {self.page_size}")
        if self.address_page_size < 1:
            raise ValueError(
                f"address_page_size must be 1 or greater, got {self.address_page_size}"
            )
        # Validates threshold and worker count
        self.scan_configuration()

    def scan_configuration(self, min_confidence: Optional[int] = None) -> ScanConfiguration:
        """Build the scan settings, optionally overriding the threshold."""
        return ScanConfiguration(
            min_confidence=self.min_confidence if min_confidence is None else min_confidence,
            use_blocking=self.use_blocking,
            max_workers=self.max_workers,
        )

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'MatchConfig':
        """Read settings from CITIZENMATCH_* environment variables."""
        environ = os.environ if environ is None else environ
        values = {}

        database = environ.get(f'{ENV_PREFIX}DATABASE')
        if database:
            values['database_path'] = Path(database)

        for name in ('min_confidence', 'page_size', 'address_page_size', 'max_workers'):
            raw = environ.get(f'{ENV_PREFIX}{name.upper()}')
            if raw is not None:
                try:
                    values[name] = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}")

        raw = environ.get(f'{ENV_PREFIX}USE_BLOCKING')
        if raw is not None:
            flag = raw.strip().lower()
            if flag not in TRUE_VALUES | FALSE_VALUES:
                raise ValueError(f"{ENV_PREFIX}USE_BLOCKING must be a boolean, got {raw!r}")
            values['use_blocking'] = flag in TRUE_VALUES

        return cls(**values)


# Global configuration instance
default_config = MatchConfig()
