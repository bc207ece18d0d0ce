"""Scoring run orchestration and command-line entry point."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from core.config import ConfigValidationError, Settings, load_config
from core.context import Session
from core.logging import configure_logging
from schemas import JobAnalysis, JobPosting
from scoring.oracle import LiteLLMOracle
from scoring.pipeline import ScoringError, ScoringPipeline, apply_analyses
from storage.analyses import JobAnalysisStore
from storage.cache import FileCache
from storage.remote import FileRemoteStore

logger = structlog.get_logger(__name__)


async def run_scoring(
    session: Session,
    jobs: list[JobPosting],
    analysis_store: JobAnalysisStore,
    pipeline: ScoringPipeline,
) -> dict[str, JobAnalysis]:
    """Score a batch with the session's skill profile and persist the results.

    Stored analyses for jobs outside the batch are left untouched. On
    ScoringError nothing is written and the error propagates.

    Returns:
        The full jobId -> JobAnalysis mapping after the merge
    """
    existing = await analysis_store.load(session.user_id)
    results = await pipeline.score(jobs, session.store.skill_profile)

    await analysis_store.save_many(session.user_id, results)
    merged = apply_analyses(existing, results)
    logger.info(
        "scoring_run_complete",
        user_id=session.user_id,
        scored=len(results),
        total=len(merged),
    )
    return merged


def load_jobs(path: Path) -> list[JobPosting]:
    """Load a JSON list of jobs ({id, title, company, description})."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of jobs in {path}")
    return [JobPosting.model_validate(item) for item in data]


def load_skills(path: Path) -> list[str]:
    """Load a skill profile from YAML: either a list or {skills: [...]}."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("skills") or []
    return [str(s) for s in data]


async def run_scoring_from_files_async(
    user_id: str,
    jobs_path: Path,
    skills_path: Path,
    settings: Settings | None = None,
) -> dict[str, JobAnalysis]:
    """Score jobs for a user against file-backed cache and remote stores."""
    settings = settings or load_config()
    cache = FileCache(settings.cache_dir)
    remote = FileRemoteStore(settings.remote_dir)

    pipeline = ScoringPipeline(
        LiteLLMOracle(
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            max_retries=settings.llm_max_retries,
        )
    )
    jobs = load_jobs(jobs_path)
    skills = load_skills(skills_path)

    async with await Session.sign_in(
        user_id, cache, remote, settings, skill_profile=skills
    ) as session:
        return await run_scoring(
            session, jobs, JobAnalysisStore(cache, remote), pipeline
        )


def run_scoring_from_files(
    user_id: str,
    jobs_path: Path,
    skills_path: Path,
    settings: Settings | None = None,
) -> dict[str, JobAnalysis]:
    """Synchronous wrapper for run_scoring_from_files_async."""
    return asyncio.run(
        run_scoring_from_files_async(user_id, jobs_path, skills_path, settings)
    )


def _summary(analyses: dict[str, JobAnalysis]) -> list[dict[str, Any]]:
    return [
        {"jobId": job_id, "score": a.keyword_match_score, "keywords": len(a.keywords)}
        for job_id, a in sorted(
            analyses.items(), key=lambda kv: kv[1].keyword_match_score, reverse=True
        )
    ]


def main(argv: list[str] | None = None) -> None:
    """Entry point: trackflow-score <user_id> <jobs.json> <skills.yaml>"""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 3:
        print("usage: trackflow-score <user_id> <jobs.json> <skills.yaml>", file=sys.stderr)
        sys.exit(2)

    try:
        settings = load_config()
    except ConfigValidationError as e:
        configure_logging()
        logger.error("Configuration error", error=str(e), errors=e.errors)
        sys.exit(1)

    configure_logging(settings.log_level, settings.json_logs)

    user_id, jobs_path, skills_path = args
    try:
        analyses = run_scoring_from_files(
            user_id, Path(jobs_path), Path(skills_path), settings
        )
    except (OSError, ValueError, ValidationError) as e:
        logger.error("Could not read input", error=str(e))
        sys.exit(1)
    except ScoringError as e:
        logger.error("Scoring failed", error=str(e))
        sys.exit(1)

    print(json.dumps(_summary(analyses), indent=2))


if __name__ == "__main__":
    main()
