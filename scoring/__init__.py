"""Scoring stage: job batch -> keyword match score + fit commentary."""

from scoring.normalizers import keyword_match_score, normalize_skill_set
from scoring.oracle import (
    FitRequest,
    KeywordRequest,
    LiteLLMOracle,
    OracleError,
    ReasoningOracle,
)
from scoring.pipeline import ScoringError, ScoringPipeline, apply_analyses

__all__ = [
    "FitRequest",
    "KeywordRequest",
    "LiteLLMOracle",
    "OracleError",
    "ReasoningOracle",
    "ScoringError",
    "ScoringPipeline",
    "apply_analyses",
    "keyword_match_score",
    "normalize_skill_set",
]
