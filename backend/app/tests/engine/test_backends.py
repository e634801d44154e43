import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError

from app.engine.backends import AIProvider, PrimaryBackend, SecondaryBackend, close_backends, get_backend
from app.engine.errors import BackendConnectionError, BackendError, ParseError
from app.engine.llm_client import LLMClient
from app.engine.prompts.profile import PROFILE_VERSION, build_instruction_profile

PROFILE = build_instruction_profile("English")

SUGGESTIONS = [
    {"category": "Structure", "improvement": "Split the preview module", "reason": "It mixes two concerns"},
    {"category": "Performance", "improvement": "Debounce rendering", "reason": "Typing re-renders too often"},
]


def _mock_openai(content: str | None = None, *, side_effect=None):
    mock_message = MagicMock()
    mock_message.content = content

    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]

    mock_completions = MagicMock()
    mock_completions.create = AsyncMock(return_value=mock_response, side_effect=side_effect)

    mock_chat = MagicMock()
    mock_chat.completions = mock_completions

    mock_client_instance = AsyncMock()
    mock_client_instance.chat = mock_chat
    return mock_client_instance, mock_completions


def _llm() -> LLMClient:
    return LLMClient(model_name="test-model", base_url="http://llm.test/v1", api_key="dummy_key")


@pytest.mark.asyncio
async def test_primary_refine_returns_text_without_fences():
    client, completions = _mock_openai("```markdown\n# Refined prompt\n```")

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        backend = PrimaryBackend(_llm())
        refined = await backend.refine("# Raw prompt", PROFILE)

    assert refined == "# Refined prompt"
    completions.create.assert_called_once()
    messages = completions.create.call_args.kwargs["messages"]
    assert messages[0] == {"role": "system", "content": PROFILE.refine_instruction}
    assert messages[1] == {"role": "user", "content": "# Raw prompt"}


@pytest.mark.asyncio
async def test_primary_critique_requests_json_schema_and_keeps_order():
    client, completions = _mock_openai(json.dumps({"suggestions": SUGGESTIONS}))

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        suggestions = await PrimaryBackend(_llm()).critique("# Prompt", PROFILE)

    assert [s.category for s in suggestions] == ["Structure", "Performance"]
    response_format = completions.create.call_args.kwargs["response_format"]
    assert response_format["type"] == "json_schema"
    assert "suggestions" in response_format["json_schema"]["schema"]["properties"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps(SUGGESTIONS),
        json.dumps({"suggestions": [{"category": "Structure", "improvement": "Split it"}]}),
    ],
)
async def test_primary_critique_rejects_malformed_payloads(content):
    client, _ = _mock_openai(content)

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        with pytest.raises(ParseError):
            await PrimaryBackend(_llm()).critique("# Prompt", PROFILE)


@pytest.mark.asyncio
async def test_secondary_critique_parses_bare_array_with_prompt_enforced_format():
    client, completions = _mock_openai(json.dumps(SUGGESTIONS))

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        suggestions = await SecondaryBackend(_llm()).critique("# Prompt", PROFILE)

    assert [s.improvement for s in suggestions] == ["Split the preview module", "Debounce rendering"]
    kwargs = completions.create.call_args.kwargs
    assert "response_format" not in kwargs
    assert "JSON array" in kwargs["messages"][0]["content"]


def test_secondary_parse_extracts_array_from_surrounding_prose():
    raw = "Here are my suggestions:\n```json\n" + json.dumps(SUGGESTIONS) + "\n```\nHope this helps."

    suggestions = SecondaryBackend.parse_suggestions(raw)

    assert len(suggestions) == 2
    assert suggestions[1].reason == "Typing re-renders too often"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"category": "a", "improvement": "b", "reason": "c"}',
        '[{"category": "a", "improvement": "b"}]',
        "[not, json]",
    ],
)
def test_secondary_parse_rejects_anything_but_complete_suggestion_arrays(raw):
    with pytest.raises(ParseError):
        SecondaryBackend.parse_suggestions(raw)


@pytest.mark.asyncio
async def test_connection_failures_surface_as_connectivity_errors():
    error = APIConnectionError(request=httpx.Request("POST", "http://llm.test/v1/chat/completions"))
    client, _ = _mock_openai(side_effect=error)

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        with pytest.raises(BackendConnectionError) as exc_info:
            await SecondaryBackend(_llm()).refine("# Prompt", PROFILE)

    assert exc_info.value.kind == "connectivity"
    assert isinstance(exc_info.value, BackendError)


@pytest.mark.asyncio
async def test_empty_content_is_a_parse_error():
    client, _ = _mock_openai("")

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        with pytest.raises(ParseError):
            await PrimaryBackend(_llm()).refine("# Prompt", PROFILE)


@pytest.mark.asyncio
async def test_no_choices_is_a_parse_error():
    client, completions = _mock_openai("unused")
    completions.create.return_value.choices = []

    with patch("app.engine.llm_client.AsyncOpenAI", return_value=client):
        with pytest.raises(ParseError):
            await PrimaryBackend(_llm()).refine("# Prompt", PROFILE)


@pytest.mark.asyncio
async def test_get_backend_reuses_one_client_per_provider():
    with patch("app.engine.llm_client.AsyncOpenAI") as openai_cls:
        openai_cls.return_value.close = AsyncMock()

        primary = get_backend(AIProvider.PRIMARY)
        assert isinstance(primary, PrimaryBackend)
        assert get_backend("primary") is primary
        assert isinstance(get_backend("secondary"), SecondaryBackend)
        assert openai_cls.call_count == 2

        await close_backends()
        assert openai_cls.return_value.close.await_count == 2
        assert get_backend(AIProvider.PRIMARY) is not primary
        await close_backends()


def test_instruction_profile_carries_contract():
    profile = build_instruction_profile("Simplified Chinese")

    assert profile.version == PROFILE_VERSION
    for sub_section in ("Business logic", "Rendering optimization", "Style optimization", "Performance optimization"):
        assert sub_section in profile.refine_instruction
    assert "additive only" in profile.refine_instruction
    assert "Simplified Chinese" in profile.refine_instruction
    assert "Simplified Chinese" in profile.critique_instruction
    for key in ("`category`", "`improvement`", "`reason`"):
        assert key in profile.critique_instruction
