"""ID generation and cache key utilities."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime, timezone

CACHE_NAMESPACE = "trackflow"


def generate_contact_id() -> str:
    """Generate a unique contact ID.

    Format: c_<unix_millis>_<short_uuid>
    """
    millis = int(datetime.now(timezone.utc).timestamp() * 1000)
    return f"c_{millis}_{uuid.uuid4().hex[:8]}"


def legacy_contact_id(job_id: str, index: int, taken: Iterable[str]) -> str:
    """Build a deterministic ID for a migrated legacy recruiter entry.

    Suffixes with a counter when the base ID collides with one in ``taken``.
    """
    taken = set(taken)
    base = f"legacy-{job_id}-{index}"
    candidate = base
    n = 1
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    return candidate


def namespace_prefix(user_id: str) -> str:
    """Per-user cache key prefix."""
    return f"{CACHE_NAMESPACE}:{user_id}:"


def cache_key(user_id: str, name: str) -> str:
    return f"{namespace_prefix(user_id)}{name}"
