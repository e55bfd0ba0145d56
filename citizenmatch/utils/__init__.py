"""Text utilities."""

from .name_cleaner import normalize

__all__ = ['normalize']
