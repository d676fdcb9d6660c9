"""Tests for the Gemini and Ollama backends."""
import asyncio
from unittest.mock import AsyncMock, Mock, PropertyMock, patch

import pytest
import requests
from google.api_core import exceptions as google_exceptions

from nutriplan.data_layer.exceptions import (
    ErrorCode,
    FatalBackendError,
    MalformedResponseError,
    TransientBackendError,
)
from nutriplan.providers.gemini_provider import GeminiProvider
from nutriplan.providers.ollama_provider import OllamaProvider


CATALOG = {
    "models": [
        {"name": "models/gemini-2.0-flash", "supportedGenerationMethods": ["generateContent"]},
        {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
        {"name": "models/gemini-exp-1206", "supportedGenerationMethods": ["generateContent"]},
        {"name": "models/gemini-2.5-flash", "supportedGenerationMethods": ["generateContent", "countTokens"]},
        {"name": "models/text-bison", "supportedGenerationMethods": ["generateContent"]},
    ]
}


def catalog_response(status=200, payload=None):
    response = Mock()
    response.status_code = status
    response.json.return_value = CATALOG if payload is None else payload
    return response


@pytest.fixture
def genai():
    with patch("nutriplan.providers.gemini_provider.genai") as mocked:
        yield mocked


@pytest.fixture
def clock():
    return {"now": 1000.0}


@pytest.fixture
def gemini(genai, clock):
    return GeminiProvider(api_key="test-key", catalog_ttl=600, clock=lambda: clock["now"])


class TestGeminiInit:
    """Tests for GeminiProvider construction."""

    def test_requires_key(self, genai):
        with pytest.raises(ValueError, match="API key is required"):
            GeminiProvider(api_key="  ")

    def test_configures_sdk(self, genai):
        GeminiProvider(api_key=" abc ")
        genai.configure.assert_called_once_with(api_key="abc")

    def test_from_env(self, genai, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        assert GeminiProvider.from_env().api_key == "env-key"

    def test_from_env_missing(self, genai, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiProvider.from_env()

    def test_timeouts(self, gemini):
        assert gemini.timeout_for(weekly=True) == 120.0
        assert gemini.timeout_for(weekly=False) == 60.0


class TestGeminiCatalog:
    """Tests for model discovery and caching."""

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_catalog_sorted_by_priority(self, mock_get, gemini):
        mock_get.return_value = catalog_response()

        models = asyncio.run(gemini.list_models())

        assert models == ["gemini-2.5-flash", "gemini-2.0-flash", "gemini-exp-1206"]
        _, kwargs = mock_get.call_args
        assert kwargs["params"]["key"] == "test-key"

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_catalog_cached_within_ttl(self, mock_get, gemini, clock):
        mock_get.return_value = catalog_response()

        asyncio.run(gemini.list_models())
        clock["now"] += 599
        asyncio.run(gemini.list_models())
        assert mock_get.call_count == 1

        clock["now"] += 2
        asyncio.run(gemini.list_models())
        assert mock_get.call_count == 2

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_invalidate(self, mock_get, gemini):
        mock_get.return_value = catalog_response()
        asyncio.run(gemini.list_models())
        gemini.invalidate_models()
        asyncio.run(gemini.list_models())
        assert mock_get.call_count == 2

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_catalog_failure_uses_priority_list(self, mock_get, gemini):
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")

        assert asyncio.run(gemini.list_models()) == list(GeminiProvider.DEFAULT_MODEL_PRIORITY)
        asyncio.run(gemini.list_models())
        assert mock_get.call_count == 2

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_catalog_error_status(self, mock_get, gemini):
        mock_get.return_value = catalog_response(status=403)
        assert asyncio.run(gemini.list_models()) == list(GeminiProvider.DEFAULT_MODEL_PRIORITY)

    @patch("nutriplan.providers.gemini_provider.requests.get")
    def test_empty_catalog(self, mock_get, gemini):
        mock_get.return_value = catalog_response(payload={"models": []})
        assert asyncio.run(gemini.list_models()) == list(GeminiProvider.DEFAULT_MODEL_PRIORITY)


class TestGeminiGenerate:
    """Tests for generation and error mapping."""

    def _model(self, genai, result=None, error=None):
        model = Mock()
        model.generate_content_async = AsyncMock(return_value=result, side_effect=error)
        genai.GenerativeModel.return_value = model
        return model

    def test_returns_text(self, genai, gemini):
        model = self._model(genai, result=Mock(text='{"weeklyPlan": []}'))

        text = asyncio.run(gemini.generate("gemini-2.5-flash", "prompt", weekly=True))

        assert text == '{"weeklyPlan": []}'
        genai.GenerativeModel.assert_called_once_with("gemini-2.5-flash")
        _, kwargs = model.generate_content_async.call_args
        assert kwargs["generation_config"]["max_output_tokens"] == GeminiProvider.WEEKLY_MAX_TOKENS

    def test_single_item_token_budget(self, genai, gemini):
        model = self._model(genai, result=Mock(text="{}"))
        asyncio.run(gemini.generate("m", "prompt"))
        _, kwargs = model.generate_content_async.call_args
        assert kwargs["generation_config"]["max_output_tokens"] == GeminiProvider.SINGLE_MAX_TOKENS

    @pytest.mark.parametrize("error, error_type, code", [
        (google_exceptions.ResourceExhausted("Quota exceeded for metric"), FatalBackendError,
         ErrorCode.QUOTA_EXCEEDED),
        (google_exceptions.ResourceExhausted("Resource has been exhausted"), TransientBackendError,
         ErrorCode.RATE_LIMITED),
        (google_exceptions.PermissionDenied("API key not valid"), FatalBackendError,
         ErrorCode.INVALID_CREDENTIALS),
        (google_exceptions.ServiceUnavailable("The model is overloaded"), TransientBackendError,
         ErrorCode.BACKEND_OVERLOADED),
        (google_exceptions.DeadlineExceeded("deadline"), TransientBackendError, ErrorCode.TIMEOUT),
        (google_exceptions.InternalServerError("boom"), TransientBackendError, ErrorCode.BACKEND_ERROR),
    ])
    def test_error_mapping(self, genai, gemini, error, error_type, code):
        self._model(genai, error=error)
        with pytest.raises(error_type) as exc:
            asyncio.run(gemini.generate("gemini-2.5-flash", "prompt"))
        assert exc.value.code == code
        assert exc.value.model == "gemini-2.5-flash"

    def test_empty_text(self, genai, gemini):
        self._model(genai, result=Mock(text="   "))
        with pytest.raises(MalformedResponseError):
            asyncio.run(gemini.generate("m", "prompt"))

    def test_blocked_response(self, genai, gemini):
        blocked = Mock()
        type(blocked).text = PropertyMock(side_effect=ValueError("blocked"))
        self._model(genai, result=blocked)
        with pytest.raises(MalformedResponseError):
            asyncio.run(gemini.generate("m", "prompt"))


@pytest.fixture
def session():
    mocked = Mock()
    response = Mock()
    response.status_code = 200
    response.json.return_value = {"response": '{"meals": []}'}
    mocked.post.return_value = response
    return mocked


class TestOllamaProvider:
    """Tests for OllamaProvider."""

    def test_defaults(self, session):
        provider = OllamaProvider(session=session)
        assert provider.base_url == "http://localhost:11434"
        assert asyncio.run(provider.list_models()) == ["phi"]
        assert provider.timeout_for(weekly=True) == 600.0
        assert provider.timeout_for(weekly=False) == 300.0

    def test_from_env(self, monkeypatch, session):
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434/")
        monkeypatch.setenv("OLLAMA_MODEL", "llama3")
        provider = OllamaProvider.from_env(session=session)
        assert provider.base_url == "http://gpu-box:11434"
        assert provider.model == "llama3"

    def test_generate(self, session):
        provider = OllamaProvider(session=session)

        text = asyncio.run(provider.generate("phi", "prompt", weekly=True))

        assert text == '{"meals": []}'
        session.get.assert_called_once_with("http://localhost:11434/api/tags", timeout=5)
        args, kwargs = session.post.call_args
        assert args[0] == "http://localhost:11434/api/generate"
        assert kwargs["json"]["model"] == "phi"
        assert kwargs["json"]["stream"] is False
        assert kwargs["json"]["options"]["num_predict"] == 8000
        assert kwargs["timeout"] == 600.0

    def test_server_down_is_fatal(self, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        provider = OllamaProvider(session=session)

        with pytest.raises(FatalBackendError) as exc:
            asyncio.run(provider.generate("phi", "prompt"))
        assert exc.value.code == ErrorCode.BACKEND_UNAVAILABLE
        session.post.assert_not_called()

    def test_error_status(self, session):
        session.post.return_value.status_code = 500
        provider = OllamaProvider(session=session)
        with pytest.raises(requests.exceptions.HTTPError, match="500"):
            asyncio.run(provider.generate("phi", "prompt"))

    def test_missing_response_text(self, session):
        session.post.return_value.json.return_value = {"done": True}
        provider = OllamaProvider(session=session)
        with pytest.raises(MalformedResponseError):
            asyncio.run(provider.generate("phi", "prompt"))
