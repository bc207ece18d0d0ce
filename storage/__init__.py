"""Persistence tiers for track-flow state and job analyses."""

from storage.analyses import JobAnalysisStore
from storage.cache import FileCache, LocalCache, MemoryCache
from storage.dual_tier import DualTierStore
from storage.migration import (
    ShapeKind,
    classify_contacts,
    classify_drafts,
    migrate_contacts,
    migrate_drafts,
)
from storage.remote import (
    FileRemoteStore,
    InMemoryRemoteStore,
    RemoteStore,
    RemoteStoreError,
)

__all__ = [
    "DualTierStore",
    "FileCache",
    "FileRemoteStore",
    "InMemoryRemoteStore",
    "JobAnalysisStore",
    "LocalCache",
    "MemoryCache",
    "RemoteStore",
    "RemoteStoreError",
    "ShapeKind",
    "classify_contacts",
    "classify_drafts",
    "migrate_contacts",
    "migrate_drafts",
]
