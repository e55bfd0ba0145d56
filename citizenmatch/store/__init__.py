"""Citizen registry data store."""

from .adapter import CitizenStore, StatusFilter, StoreError

__all__ = ['CitizenStore', 'StatusFilter', 'StoreError']
