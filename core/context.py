"""Session context and lifecycle management."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog

from core.config import Settings
from storage.cache import LocalCache
from storage.dual_tier import DualTierStore
from storage.remote import RemoteStore
from trackflow.store import TrackFlowStore

logger = structlog.get_logger(__name__)


class SessionStatus(str, Enum):
    """Status of a user session."""

    ACTIVE = "active"
    CLOSED = "closed"


class Session:
    """One signed-in user's track-flow session.

    Owns the DualTierStore (and so the debounce timer) for the user's
    namespace. Created by sign_in, torn down by sign_out.
    """

    def __init__(
        self,
        user_id: str,
        tiers: DualTierStore,
        store: TrackFlowStore,
        started_at: datetime,
    ) -> None:
        self.user_id = user_id
        self.tiers = tiers
        self.store = store
        self.started_at = started_at
        self.ended_at: datetime | None = None
        self.status = SessionStatus.ACTIVE

    @classmethod
    async def sign_in(
        cls,
        user_id: str,
        cache: LocalCache,
        remote: RemoteStore,
        settings: Settings | None = None,
        skill_profile: list[str] | None = None,
    ) -> Session:
        """Start a session: load the user's state and wire up persistence."""
        settings = settings or Settings()
        tiers = DualTierStore(
            cache, remote, settle_window=settings.settle_window_seconds
        )
        state = await tiers.load(user_id)
        store = TrackFlowStore(
            user_id, tiers, state=state, skill_profile=skill_profile
        )
        logger.info("session_started", user_id=user_id)
        return cls(user_id, tiers, store, datetime.now(timezone.utc))

    async def sign_out(self) -> None:
        """End the session, dropping any remote write still waiting to settle."""
        if self.status is SessionStatus.CLOSED:
            return
        self.tiers.cancel()
        self.status = SessionStatus.CLOSED
        self.ended_at = datetime.now(timezone.utc)
        logger.info("session_ended", user_id=self.user_id)

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    async def __aenter__(self) -> Session:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.sign_out()

    def summary(self) -> dict[str, Any]:
        """Get a summary of the session for display."""
        state = self.store.state
        return {
            "user_id": self.user_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "tracked": len(state.tracked_jobs),
            "contacts": sum(len(c) for c in state.job_contacts.values()),
            "drafts": len(state.contact_drafts),
            "pending_remote_write": self.tiers.has_pending_write,
        }
