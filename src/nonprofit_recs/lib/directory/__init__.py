"""Clients for the external nonprofit directory."""

from .base import DirectoryClient
from .cached import CachedDirectoryClient
from .everyorg import EveryOrgClient

__all__ = [
    "CachedDirectoryClient",
    "DirectoryClient",
    "EveryOrgClient",
]
