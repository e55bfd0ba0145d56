"""citizenmatch - Find likely duplicate citizen records in a beneficiary registry."""

__version__ = "0.1.0"

from .config import MatchConfig
from .core.citizen import CitizenRecord
from .matching import DuplicateScanner, MatchCandidate, ScanConfiguration
from .service import DuplicateCheckService, ScanResult, ScanStatus
from .store import CitizenStore, StoreError

__all__ = [
    'CitizenRecord',
    'CitizenStore',
    'DuplicateCheckService',
    'DuplicateScanner',
    'MatchCandidate',
    'MatchConfig',
    'ScanConfiguration',
    'ScanResult',
    'ScanStatus',
    'StoreError',
]
