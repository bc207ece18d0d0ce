"""Unit tests for scoring run orchestration."""

import json
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from core.config import Settings
from core.context import Session
from orchestration.runner import load_jobs, load_skills, run_scoring
from schemas import FitCommentary, JobAnalysis, JobPosting
from scoring.oracle import ReasoningOracle
from scoring.pipeline import ScoringError, ScoringPipeline
from storage.analyses import JobAnalysisStore

PREVIOUS = JobAnalysis(keywords=["Go"], keyword_match_score=100)


def _pipeline(keywords=None, fail=False):
    oracle = AsyncMock(spec=ReasoningOracle)
    oracle.extract_keywords.return_value = keywords or {}
    oracle.analyze_fit.return_value = {"1": FitCommentary(what_looks_good="ok")}
    if fail:
        oracle.analyze_fit.side_effect = RuntimeError("oracle down")
    return ScoringPipeline(oracle)


@pytest_asyncio.fixture
async def session(cache, remote):
    return await Session.sign_in(
        "u1",
        cache,
        remote,
        Settings(_env_file=None),
        skill_profile=["Python"],
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_scoring_merges_and_persists(session, cache, remote):
    store = JobAnalysisStore(cache, remote)
    await store.save_many("u1", {"1": PREVIOUS, "2": PREVIOUS})
    jobs = [JobPosting(id="1", title="Eng", company="Acme")]

    merged = await run_scoring(
        session, jobs, store, _pipeline({"1": ["Python", "AWS"]})
    )

    assert merged["1"].keyword_match_score == 50
    assert merged["1"].what_looks_good == "ok"
    assert merged["2"] == PREVIOUS
    assert await store.load("u1") == merged


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_run_writes_nothing(session, cache, remote):
    store = JobAnalysisStore(cache, remote)
    await store.save("u1", "1", PREVIOUS)
    jobs = [JobPosting(id="1", title="Eng", company="Acme")]

    with pytest.raises(ScoringError):
        await run_scoring(session, jobs, store, _pipeline({"1": ["Python"]}, fail=True))

    assert await store.load("u1") == {"1": PREVIOUS}


@pytest.mark.unit
def test_load_inputs(tmp_path):
    jobs_path = tmp_path / "jobs.json"
    jobs_path.write_text(
        json.dumps([{"id": "1", "title": "Eng", "company": "Acme", "description": "x"}])
    )
    skills_path = tmp_path / "skills.yaml"
    skills_path.write_text("skills:\n  - Python\n  - SQL\n")

    assert load_jobs(jobs_path)[0].company == "Acme"
    assert load_skills(skills_path) == ["Python", "SQL"]


@pytest.mark.unit
def test_load_jobs_rejects_non_list(tmp_path):
    path = tmp_path / "jobs.json"
    path.write_text("{}")

    with pytest.raises(ValueError):
        load_jobs(path)
