"""Reasoning oracle: batch keyword extraction and fit commentary via litellm."""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod

import litellm  # type: ignore[import-untyped]
import structlog
from pydantic import Field, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from schemas import FitCommentary
from schemas.base import BaseSchema

logger = structlog.get_logger(__name__)


class OracleError(Exception):
    """The oracle answered, but not with the expected shape."""


# --- Batch contracts ---


class KeywordRequest(BaseSchema):
    """One job in a keyword extraction batch."""

    job_id: str = Field(..., alias="jobId")
    title: str
    company: str
    description: str = ""


class FitRequest(BaseSchema):
    """One job in a fit analysis batch."""

    job_id: str = Field(..., alias="jobId")
    title: str
    company: str
    keywords: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list, alias="matchedKeywords")


class _KeywordItem(BaseSchema):
    job_id: str = Field(..., alias="jobId")
    keywords: list[str] = Field(default_factory=list)


class _KeywordResponse(BaseSchema):
    jobs: list[_KeywordItem] = Field(default_factory=list)


class _FitItem(FitCommentary):
    job_id: str = Field(..., alias="jobId")


class _FitResponse(BaseSchema):
    jobs: list[_FitItem] = Field(default_factory=list)


class ReasoningOracle(ABC):
    """External text-analysis capability. Each call succeeds or fails as a unit."""

    @abstractmethod
    async def extract_keywords(
        self, batch: list[KeywordRequest]
    ) -> dict[str, list[str]]:
        """Return jobId -> keywords for the batch."""

    @abstractmethod
    async def analyze_fit(self, batch: list[FitRequest]) -> dict[str, FitCommentary]:
        """Return jobId -> fit commentary for the batch."""


# --- litellm implementation ---

_KEYWORDS_SYSTEM_PROMPT = """\
You extract the skills and technologies a job posting asks for.
For each job, list the concrete hard skills, tools, languages, frameworks and
domain terms from the description. Use short canonical names ("Python",
"Kubernetes", "SQL"), no sentences, no duplicates, at most 25 per job.
Return ONLY JSON of the form:
{"jobs": [{"jobId": "<id>", "keywords": ["...", "..."]}]}
"""

_FIT_SYSTEM_PROMPT = """\
You assess how well a candidate fits each job.
For each job you get its keywords, the candidate's skills, and which keywords
already matched. Write one or two sentences on what looks good and one or two
on what is missing. Be specific and refer to the keywords.
Return ONLY JSON of the form:
{"jobs": [{"jobId": "<id>", "whatLooksGood": "...", "whatIsMissing": "..."}]}
"""

_RETRYABLE = (
    litellm.RateLimitError,
    litellm.APIConnectionError,
    litellm.Timeout,
    litellm.ServiceUnavailableError,
)


class LiteLLMOracle(ReasoningOracle):
    """ReasoningOracle backed by a chat model through litellm."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        max_retries: int = 3,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries

    async def extract_keywords(
        self, batch: list[KeywordRequest]
    ) -> dict[str, list[str]]:
        payload = [item.to_json_dict() for item in batch]
        raw = await self._complete_json(_KEYWORDS_SYSTEM_PROMPT, payload)
        try:
            parsed = _KeywordResponse.model_validate(raw)
        except ValidationError as e:
            raise OracleError(f"Bad keyword response: {e}") from e
        return {item.job_id: item.keywords for item in parsed.jobs}

    async def analyze_fit(self, batch: list[FitRequest]) -> dict[str, FitCommentary]:
        payload = [item.to_json_dict() for item in batch]
        raw = await self._complete_json(_FIT_SYSTEM_PROMPT, payload)
        try:
            parsed = _FitResponse.model_validate(raw)
        except ValidationError as e:
            raise OracleError(f"Bad fit response: {e}") from e
        return {
            item.job_id: FitCommentary(
                what_looks_good=item.what_looks_good,
                what_is_missing=item.what_is_missing,
            )
            for item in parsed.jobs
        }

    async def _complete_json(self, system_prompt: str, payload: list[dict]) -> object:
        """Send one chat completion and decode its JSON body.

        Rate limits and transient provider errors are retried with
        exponential backoff; anything else fails immediately.
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": json.dumps({"jobs": payload})},
        ]
        start = time.monotonic()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=2, min=2, max=8),
            retry=retry_if_exception_type(_RETRYABLE),
            reraise=True,
        ):
            with attempt:
                response = await litellm.acompletion(
                    model=self.model,
                    messages=messages,
                    response_format={"type": "json_object"},
                    temperature=self.temperature,
                )

        raw_text: str = response.choices[0].message.content or ""  # type: ignore[union-attr]
        usage = getattr(response, "usage", None)
        logger.debug(
            "oracle_call",
            model=self.model,
            jobs=len(payload),
            chars=len(raw_text),
            tokens=getattr(usage, "total_tokens", 0) if usage else 0,
            duration_ms=round((time.monotonic() - start) * 1000),
        )

        try:
            return json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise OracleError(f"Oracle returned invalid JSON: {e}") from e
