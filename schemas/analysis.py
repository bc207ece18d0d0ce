"""Job posting and fit analysis schemas."""

from __future__ import annotations

from pydantic import Field

from .base import BaseSchema


class JobPosting(BaseSchema):
    """The slice of a job listing the scoring pipeline needs."""

    id: str
    title: str
    company: str
    description: str = ""


class FitCommentary(BaseSchema):
    """Qualitative fit commentary returned by the reasoning oracle."""

    what_looks_good: str = Field(default="", alias="whatLooksGood")
    what_is_missing: str = Field(default="", alias="whatIsMissing")


class JobAnalysis(BaseSchema):
    """Result of one scoring run for one job. Replaced wholesale on rescoring."""

    keywords: list[str] = Field(default_factory=list)
    keyword_match_score: int = Field(default=0, ge=0, le=100, alias="keywordMatchScore")
    what_looks_good: str = Field(default="", alias="whatLooksGood")
    what_is_missing: str = Field(default="", alias="whatIsMissing")
