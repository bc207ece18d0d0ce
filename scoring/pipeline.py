"""Batch job-fit scoring: oracle keyword extraction + local match scoring."""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping

import structlog

from schemas import FitCommentary, JobAnalysis, JobPosting
from scoring.normalizers import (
    dedupe_keywords,
    keyword_match_score,
    matched_keywords,
    normalize_skill_set,
)
from scoring.oracle import FitRequest, KeywordRequest, ReasoningOracle

logger = structlog.get_logger(__name__)


class ScoringError(Exception):
    """A scoring batch failed as a whole; no results were produced."""


class ScoringPipeline:
    """Scores a batch of jobs against a skill profile.

    Two oracle calls per batch, strictly in sequence:
    1. Extract keywords for every job
    2. Match keywords against the normalized skill set locally
    3. Ask for fit commentary using the matches
    4. Derive the percentage score locally

    Either oracle call failing aborts the batch with ScoringError.
    """

    def __init__(self, oracle: ReasoningOracle) -> None:
        self.oracle = oracle

    async def score(
        self,
        jobs: list[JobPosting],
        skill_profile: Iterable[str],
    ) -> dict[str, JobAnalysis]:
        """Return jobId -> JobAnalysis for every job in the batch."""
        if not jobs:
            return {}

        start = time.monotonic()
        skills = [s for s in skill_profile if isinstance(s, str) and s.strip()]
        skill_set = normalize_skill_set(skills)

        try:
            extracted = await self.oracle.extract_keywords(
                [
                    KeywordRequest(
                        job_id=job.id,
                        title=job.title,
                        company=job.company,
                        description=job.description,
                    )
                    for job in jobs
                ]
            )
        except Exception as e:
            logger.warning("keyword_extraction_failed", jobs=len(jobs), error=str(e))
            raise ScoringError(f"Keyword extraction failed: {e}") from e

        keywords_by_job: dict[str, list[str]] = {}
        matched_by_job: dict[str, list[str]] = {}
        for job in jobs:
            keywords = dedupe_keywords(extracted.get(job.id) or [])
            keywords_by_job[job.id] = keywords
            matched_by_job[job.id] = matched_keywords(keywords, skill_set)

        try:
            commentary: Mapping[str, FitCommentary] = await self.oracle.analyze_fit(
                [
                    FitRequest(
                        job_id=job.id,
                        title=job.title,
                        company=job.company,
                        keywords=keywords_by_job[job.id],
                        skills=skills,
                        matched_keywords=matched_by_job[job.id],
                    )
                    for job in jobs
                ]
            )
        except Exception as e:
            logger.warning("fit_analysis_failed", jobs=len(jobs), error=str(e))
            raise ScoringError(f"Fit analysis failed: {e}") from e

        results: dict[str, JobAnalysis] = {}
        for job in jobs:
            keywords = keywords_by_job[job.id]
            fit = commentary.get(job.id) or FitCommentary()
            results[job.id] = JobAnalysis(
                keywords=keywords,
                keyword_match_score=keyword_match_score(
                    keywords, matched_by_job[job.id]
                ),
                what_looks_good=fit.what_looks_good,
                what_is_missing=fit.what_is_missing,
            )

        logger.info(
            "batch_scored",
            jobs=len(jobs),
            duration_ms=round((time.monotonic() - start) * 1000),
        )
        return results


def apply_analyses(
    existing: Mapping[str, JobAnalysis],
    results: Mapping[str, JobAnalysis],
) -> dict[str, JobAnalysis]:
    """Replace analyses for scored jobs wholesale; leave every other job as it was."""
    merged = dict(existing)
    merged.update(results)
    return merged
