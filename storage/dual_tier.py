"""Two-tier persistence for track-flow state: local cache plus remote store."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog

from core.ids import cache_key
from schemas import TrackFlowState
from storage.cache import LocalCache
from storage.migration import (
    migrate_contacts,
    migrate_drafts,
    parse_resumes,
    parse_tracked,
)
from storage.remote import RemoteStore

logger = structlog.get_logger(__name__)

TRACKED_KEY = "tracked"
RESUMES_KEY = "resumes"
# Current key first, then legacy aliases in preference order
CONTACTS_KEYS = ("contacts", "jobContacts", "recruiters")
DRAFTS_KEYS = ("drafts", "contactDrafts", "emailDrafts")

DEFAULT_SETTLE_WINDOW = 0.6


class DualTierStore:
    """Reads, reconciles, and writes TrackFlowState across both tiers.

    Local writes happen immediately on every save. The remote write is
    debounced: each save restarts the settle timer, so only the last state
    of a burst is sent. Failures on either write are logged and absorbed.
    """

    def __init__(
        self,
        cache: LocalCache,
        remote: RemoteStore,
        settle_window: float = DEFAULT_SETTLE_WINDOW,
    ) -> None:
        self.cache = cache
        self.remote = remote
        self.settle_window = settle_window

        self._timer: asyncio.TimerHandle | None = None
        self._pending: tuple[str, TrackFlowState] | None = None
        # In-flight remote write -> user id
        self._inflight: dict[asyncio.Task[None], str] = {}
        self._closed = False

    # --- Load ---

    async def load(self, user_id: str) -> TrackFlowState:
        """Load state: remote first, falling back to the local cache.

        If a remote write for this user is still waiting on the settle
        timer or still in flight, the local cache is newer than the remote
        and is used directly.
        """
        if self._has_unsent(user_id):
            logger.debug("load_local_pending_write", user_id=user_id)
            return self.load_local(user_id)

        try:
            state = await self.remote.get(user_id)
        except Exception as e:
            logger.warning("remote_load_failed", user_id=user_id, error=str(e))
            state = None

        if state is not None:
            logger.info("state_loaded", user_id=user_id, source="remote")
            return state

        state = self.load_local(user_id)
        logger.info(
            "state_loaded",
            user_id=user_id,
            source="local",
            tracked=len(state.tracked_jobs),
        )
        return state

    def load_local(self, user_id: str) -> TrackFlowState:
        """Assemble state from the local cache, migrating legacy shapes.

        Each slice is parsed on its own; a broken slice becomes empty
        without affecting the others.
        """
        tracked_raw = self._read_slice(user_id, (TRACKED_KEY,))
        resumes_raw = self._read_slice(user_id, (RESUMES_KEY,))
        contacts_raw = self._read_slice(user_id, CONTACTS_KEYS)
        drafts_raw = self._read_slice(user_id, DRAFTS_KEYS)

        contacts = migrate_contacts(contacts_raw if contacts_raw is not None else {})
        drafts = migrate_drafts(
            drafts_raw if drafts_raw is not None else {},
            id_map=contacts.id_map,
        )

        return TrackFlowState(
            tracked_jobs=parse_tracked(tracked_raw if tracked_raw is not None else {}),
            customized_resumes=parse_resumes(
                resumes_raw if resumes_raw is not None else {}
            ),
            job_contacts=contacts.job_contacts,
            contact_drafts=drafts.contact_drafts,
        )

    def _read_slice(self, user_id: str, keys: tuple[str, ...]) -> Any:
        """Return parsed JSON for the first present key, or None."""
        for name in keys:
            key = cache_key(user_id, name)
            try:
                text = self.cache.get(key)
            except Exception as e:
                logger.warning("cache_read_failed", key=key, error=str(e))
                continue
            if text is None:
                continue
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                logger.warning("slice_parse_failed", key=key, error=str(e))
                return None
        return None

    # --- Save ---

    def save(self, user_id: str, state: TrackFlowState) -> None:
        """Write all slices locally now and schedule the debounced remote write."""
        if self._closed:
            raise RuntimeError("DualTierStore is closed")

        self.write_local(user_id, state)

        self._cancel_timer()
        self._pending = (user_id, state.model_copy(deep=True))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("remote_write_deferred", user_id=user_id, reason="no event loop")
            return
        self._timer = loop.call_later(self.settle_window, self._fire)

    def write_local(self, user_id: str, state: TrackFlowState) -> None:
        """Write the four slices to the local cache, absorbing failures."""
        slices: dict[str, Any] = {
            TRACKED_KEY: {k: v.value for k, v in state.tracked_jobs.items()},
            RESUMES_KEY: dict(state.customized_resumes),
            CONTACTS_KEYS[0]: {
                job_id: [c.to_json_dict() for c in contacts]
                for job_id, contacts in state.job_contacts.items()
            },
            DRAFTS_KEYS[0]: {
                contact_id: d.to_json_dict()
                for contact_id, d in state.contact_drafts.items()
            },
        }
        for name, data in slices.items():
            key = cache_key(user_id, name)
            try:
                self.cache.set(key, json.dumps(data))
            except Exception as e:
                logger.warning("cache_write_failed", key=key, error=str(e))

    def _fire(self) -> None:
        self._timer = None
        if self._pending is None:
            return
        user_id, state = self._pending
        self._pending = None
        task = asyncio.get_running_loop().create_task(self._put(user_id, state))
        self._inflight[task] = user_id
        task.add_done_callback(self._forget_task)

    def _forget_task(self, task: asyncio.Task[None]) -> None:
        self._inflight.pop(task, None)

    def _has_unsent(self, user_id: str) -> bool:
        if self._pending is not None and self._pending[0] == user_id:
            return True
        return user_id in self._inflight.values()

    async def _put(self, user_id: str, state: TrackFlowState) -> None:
        try:
            await self.remote.put(user_id, state)
        except Exception as e:
            logger.warning("remote_write_failed", user_id=user_id, error=str(e))
            return
        logger.debug("remote_write_committed", user_id=user_id)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # --- Lifecycle ---

    @property
    def has_pending_write(self) -> bool:
        """True while a remote write is waiting on the settle timer."""
        return self._pending is not None

    async def flush(self) -> None:
        """Send any pending remote write now and wait for in-flight writes."""
        self._cancel_timer()
        self._fire()
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def cancel(self) -> None:
        """Drop the pending remote write and refuse further saves."""
        self._cancel_timer()
        if self._pending is not None:
            logger.info("remote_write_cancelled", user_id=self._pending[0])
        self._pending = None
        self._closed = True
