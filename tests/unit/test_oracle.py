"""Unit tests for the litellm-backed oracle (litellm is mocked)."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from scoring.oracle import FitRequest, KeywordRequest, LiteLLMOracle, OracleError


def _response(payload):
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_extract_keywords_parses_response():
    reply = _response({"jobs": [{"jobId": "1", "keywords": ["Python", "SQL"]}]})
    with patch("scoring.oracle.litellm.acompletion", AsyncMock(return_value=reply)) as call:
        result = await LiteLLMOracle(model="test-model").extract_keywords(
            [KeywordRequest(job_id="1", title="Eng", company="Acme", description="...")]
        )

    assert result == {"1": ["Python", "SQL"]}
    sent = json.loads(call.await_args.kwargs["messages"][1]["content"])
    assert sent["jobs"][0]["jobId"] == "1"
    assert call.await_args.kwargs["model"] == "test-model"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_analyze_fit_parses_response():
    reply = _response(
        {"jobs": [{"jobId": "1", "whatLooksGood": "Python", "whatIsMissing": "AWS"}]}
    )
    with patch("scoring.oracle.litellm.acompletion", AsyncMock(return_value=reply)):
        result = await LiteLLMOracle().analyze_fit(
            [FitRequest(job_id="1", title="Eng", company="Acme")]
        )

    assert result["1"].what_looks_good == "Python"
    assert result["1"].what_is_missing == "AWS"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_json_raises_oracle_error():
    with patch(
        "scoring.oracle.litellm.acompletion",
        AsyncMock(return_value=_response("not json")),
    ):
        with pytest.raises(OracleError):
            await LiteLLMOracle().extract_keywords([])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wrong_shape_raises_oracle_error():
    with patch(
        "scoring.oracle.litellm.acompletion",
        AsyncMock(return_value=_response({"jobs": [{"keywords": ["x"]}]})),
    ):
        with pytest.raises(OracleError):
            await LiteLLMOracle().extract_keywords([])


@pytest.mark.unit
@pytest.mark.asyncio
async def test_non_retryable_error_fails_immediately():
    call = AsyncMock(side_effect=ValueError("boom"))
    with patch("scoring.oracle.litellm.acompletion", call):
        with pytest.raises(ValueError):
            await LiteLLMOracle(max_retries=3).extract_keywords([])

    assert call.await_count == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    rate_limited = litellm.RateLimitError(
        message="slow down", llm_provider="openai", model="gpt-4o-mini"
    )
    reply = _response({"jobs": []})
    call = AsyncMock(side_effect=[rate_limited, reply])
    with patch("scoring.oracle.litellm.acompletion", call), patch(
        "asyncio.sleep", AsyncMock()
    ):
        result = await LiteLLMOracle(max_retries=3).extract_keywords([])

    assert result == {}
    assert call.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_retries_three_times_after_first_call():
    def limited():
        return litellm.RateLimitError(
            message="slow down", llm_provider="openai", model="gpt-4o-mini"
        )

    reply = _response({"jobs": []})
    call = AsyncMock(side_effect=[limited(), limited(), limited(), reply])
    sleep = AsyncMock()
    with patch("scoring.oracle.litellm.acompletion", call), patch("asyncio.sleep", sleep):
        result = await LiteLLMOracle(max_retries=3).extract_keywords([])

    assert result == {}
    assert call.await_count == 4
    assert [c.args[0] for c in sleep.await_args_list] == [2, 4, 8]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_gives_up_after_retries():
    limited = litellm.RateLimitError(
        message="slow down", llm_provider="openai", model="gpt-4o-mini"
    )
    call = AsyncMock(side_effect=limited)
    with patch("scoring.oracle.litellm.acompletion", call), patch(
        "asyncio.sleep", AsyncMock()
    ):
        with pytest.raises(litellm.RateLimitError):
            await LiteLLMOracle(max_retries=1).extract_keywords([])

    assert call.await_count == 2
