"""Track-flow state container and contact enrichment."""

from trackflow.enrichment import ContactFinder, FoundPerson, enrich_contact
from trackflow.store import StatePersister, TrackFlowStore

__all__ = [
    "ContactFinder",
    "FoundPerson",
    "StatePersister",
    "TrackFlowStore",
    "enrich_contact",
]
