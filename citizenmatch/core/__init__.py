"""Core data model."""

from .address import AddressKind
from .citizen import CitizenRecord, CitizenStatus, PENDING_STATUS

__all__ = ['AddressKind', 'CitizenRecord', 'CitizenStatus', 'PENDING_STATUS']
