"""Root discovery.

This module provides the anchor and profile scanner, the records it
produces, and the store membership test.
"""

from gcrootctl.roots.models import AnchorRecord, Profile, ProfileGeneration
from gcrootctl.roots.scanner import RootScanner
from gcrootctl.roots.store import resolve_store_path

__all__ = [
    "AnchorRecord",
    "Profile",
    "ProfileGeneration",
    "RootScanner",
    "resolve_store_path",
]
