"""Remote persistent tier: authoritative per-user state and analyses."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

import structlog
from pydantic import ValidationError

from schemas import JobAnalysis, TrackFlowState

logger = structlog.get_logger(__name__)


class RemoteStoreError(Exception):
    """A remote read or write could not be completed."""


class RemoteStore(ABC):
    """Abstract remote store keyed by user id.

    Implementations signal failure by raising; callers decide whether to absorb.
    """

    @abstractmethod
    async def get(self, user_id: str) -> TrackFlowState | None:
        """Fetch the user's state, or None if nothing has been stored yet."""

    @abstractmethod
    async def put(self, user_id: str, state: TrackFlowState) -> None:
        """Replace the user's stored state."""

    @abstractmethod
    async def get_analyses(self, user_id: str) -> dict[str, JobAnalysis]:
        """Fetch all stored job analyses for the user."""

    @abstractmethod
    async def put_analyses(
        self, user_id: str, analyses: dict[str, JobAnalysis]
    ) -> None:
        """Upsert job analyses for the user (only the given job ids change)."""


class InMemoryRemoteStore(RemoteStore):
    """Remote store held in memory. Records every put for inspection."""

    def __init__(self) -> None:
        self._states: dict[str, TrackFlowState] = {}
        self._analyses: dict[str, dict[str, JobAnalysis]] = {}
        self.put_log: list[tuple[str, TrackFlowState]] = []

    async def get(self, user_id: str) -> TrackFlowState | None:
        state = self._states.get(user_id)
        return state.model_copy(deep=True) if state is not None else None

    async def put(self, user_id: str, state: TrackFlowState) -> None:
        stored = state.model_copy(deep=True)
        self._states[user_id] = stored
        self.put_log.append((user_id, stored))

    async def get_analyses(self, user_id: str) -> dict[str, JobAnalysis]:
        return {
            job_id: a.model_copy(deep=True)
            for job_id, a in self._analyses.get(user_id, {}).items()
        }

    async def put_analyses(
        self, user_id: str, analyses: dict[str, JobAnalysis]
    ) -> None:
        bucket = self._analyses.setdefault(user_id, {})
        for job_id, analysis in analyses.items():
            bucket[job_id] = analysis.model_copy(deep=True)


class FileRemoteStore(RemoteStore):
    """File-based remote store.

    Structure:
        base_dir/
            {url-quoted user_id}/
                state.json       (TrackFlowState, camelCase)
                analyses.json    (jobId -> JobAnalysis)
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _user_dir(self, user_id: str) -> Path:
        if not user_id:
            raise RemoteStoreError("Empty user id")
        name = quote(user_id, safe="")
        # "." and ".." survive quoting
        if not name.strip("."):
            name = name.replace(".", "%2E")
        path = self.base_dir / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _read_json(self, path: Path) -> object | None:
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RemoteStoreError(f"Could not read {path}: {e}") from e

    def _write_json(self, path: Path, data: object) -> None:
        tmp = path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp.replace(path)
        except OSError as e:
            raise RemoteStoreError(f"Could not write {path}: {e}") from e

    async def get(self, user_id: str) -> TrackFlowState | None:
        path = self._user_dir(user_id) / "state.json"
        data = await asyncio.to_thread(self._read_json, path)
        if data is None:
            return None
        try:
            return TrackFlowState.model_validate(data)
        except ValidationError as e:
            raise RemoteStoreError(f"Invalid remote state for {user_id}") from e

    async def put(self, user_id: str, state: TrackFlowState) -> None:
        path = self._user_dir(user_id) / "state.json"
        await asyncio.to_thread(self._write_json, path, state.to_json_dict())
        logger.debug("remote_state_written", user_id=user_id, path=str(path))

    async def get_analyses(self, user_id: str) -> dict[str, JobAnalysis]:
        path = self._user_dir(user_id) / "analyses.json"
        data = await asyncio.to_thread(self._read_json, path)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RemoteStoreError(f"Invalid remote analyses for {user_id}")
        try:
            return {k: JobAnalysis.model_validate(v) for k, v in data.items()}
        except ValidationError as e:
            raise RemoteStoreError(f"Invalid remote analyses for {user_id}") from e

    async def put_analyses(
        self, user_id: str, analyses: dict[str, JobAnalysis]
    ) -> None:
        merged = await self.get_analyses(user_id)
        merged.update(analyses)
        path = self._user_dir(user_id) / "analyses.json"
        payload = {k: v.to_json_dict() for k, v in merged.items()}
        await asyncio.to_thread(self._write_json, path, payload)
