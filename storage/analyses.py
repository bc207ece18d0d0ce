"""Per-user job analysis persistence: remote first, local cache fallback."""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import ValidationError

from core.ids import cache_key
from schemas import JobAnalysis
from storage.cache import LocalCache
from storage.remote import RemoteStore

logger = structlog.get_logger(__name__)

ANALYSES_KEY = "analyses"


def normalize_analysis(data: Any) -> JobAnalysis | None:
    """Fill defaults for a stored analysis record; None if it is not an object."""
    if not isinstance(data, dict):
        return None
    keywords = data.get("keywords")
    score = data.get("keywordMatchScore")
    record = {
        "keywords": [str(k) for k in keywords] if isinstance(keywords, list) else [],
        "keywordMatchScore": score if isinstance(score, int) and 0 <= score <= 100 else 0,
        "whatLooksGood": data.get("whatLooksGood") or "",
        "whatIsMissing": data.get("whatIsMissing") or "",
    }
    try:
        return JobAnalysis.model_validate(record)
    except ValidationError:
        return None


class JobAnalysisStore:
    """Stores scoring results keyed by job id.

    Writes go to the remote store; if that fails they land in the local
    cache instead. Reads fall back the same way and never raise.
    """

    def __init__(self, cache: LocalCache, remote: RemoteStore) -> None:
        self.cache = cache
        self.remote = remote

    async def save(self, user_id: str, job_id: str, analysis: JobAnalysis) -> None:
        await self.save_many(user_id, {job_id: analysis})

    async def save_many(self, user_id: str, analyses: dict[str, JobAnalysis]) -> None:
        """Upsert analyses; only the given job ids are replaced."""
        if not analyses:
            return
        try:
            await self.remote.put_analyses(user_id, analyses)
            logger.info("analyses_saved", user_id=user_id, count=len(analyses), tier="remote")
            return
        except Exception as e:
            logger.warning("remote_analyses_save_failed", user_id=user_id, error=str(e))

        stored = self._load_local(user_id)
        stored.update(analyses)
        key = cache_key(user_id, ANALYSES_KEY)
        payload = {job_id: a.to_json_dict() for job_id, a in stored.items()}
        self.cache.set(key, json.dumps(payload))
        logger.info("analyses_saved", user_id=user_id, count=len(analyses), tier="local")

    async def load(self, user_id: str) -> dict[str, JobAnalysis]:
        try:
            return await self.remote.get_analyses(user_id)
        except Exception as e:
            logger.warning("remote_analyses_load_failed", user_id=user_id, error=str(e))
        return self._load_local(user_id)

    def _load_local(self, user_id: str) -> dict[str, JobAnalysis]:
        key = cache_key(user_id, ANALYSES_KEY)
        try:
            text = self.cache.get(key)
            data = json.loads(text) if text else {}
        except Exception as e:
            logger.warning("local_analyses_load_failed", key=key, error=str(e))
            return {}
        if not isinstance(data, dict):
            return {}

        analyses: dict[str, JobAnalysis] = {}
        for job_id, record in data.items():
            analysis = normalize_analysis(record)
            if analysis is not None:
                analyses[job_id] = analysis
        return analyses
