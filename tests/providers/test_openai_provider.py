import pytest
import httpx
from unittest.mock import Mock, patch
from openai import APIStatusError, APITimeoutError

from src.models.providers.openai_sdk import OpenAIProvider, _is_retryable
from src.models.providers.base import ChatRequest, EncodedImage, ModelError, ModelTimeout, ModelRetryable


def make_completion(content="plant", finish_reason="stop"):
    response = Mock()
    choice = Mock()
    choice.message.content = content
    choice.finish_reason = finish_reason
    response.choices = [choice]
    response.model = "gpt-4o-mini"
    response.id = "chatcmpl-1"
    response.usage.model_dump.return_value = {"total_tokens": 42}
    return response


def make_status_error(status_code):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return APIStatusError("error", response=response, body=None)


class TestOpenAIProvider:
    """Test suite for OpenAIProvider functionality"""

    @pytest.fixture
    def provider(self):
        """Create a test OpenAIProvider instance"""
        with patch('src.models.providers.openai_sdk.OpenAI'):
            return OpenAIProvider(api_key="sk-test", timeout=30)

    @pytest.fixture
    def mock_client(self, provider):
        """Get the mocked client from the provider"""
        return provider.client

    @pytest.fixture
    def request_with_image(self):
        return ChatRequest(
            model="gpt-4o-mini",
            messages=[{"role": "user", "content": "plant, fungus or else?"}],
            params={"max_tokens": 300},
            images=[EncodedImage("aGVsbG8=", "image/jpeg")],
        )

    def test_initialization(self):
        """
        Test: Client construction
        How: Patch the SDK client and inspect constructor arguments
        Ensures: SDK-level retries are disabled and the key is forwarded
        """
        with patch('src.models.providers.openai_sdk.OpenAI') as mock_openai:
            provider = OpenAIProvider(api_key="sk-test", timeout=15)

        kwargs = mock_openai.call_args[1]
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["timeout"] == 15
        assert kwargs["max_retries"] == 0
        assert provider.max_attempts == 1

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        with patch('src.models.providers.openai_sdk.OpenAI') as mock_openai:
            OpenAIProvider()
        assert mock_openai.call_args[1]["api_key"] == "sk-env"

    def test_chat_with_image(self, provider, mock_client, request_with_image):
        """
        Test: Multimodal chat completion
        How: Send a request carrying an encoded JPEG
        Ensures: The image travels as a data URL with its declared media type
        """
        mock_client.chat.completions.create.return_value = make_completion("This looks like a plant.")

        response = provider.chat(request_with_image)

        assert response.content == "This looks like a plant."
        assert response.meta["provider"] == "openai"
        assert response.meta["usage"] == {"total_tokens": 42}
        assert response.meta["finish_reason"] == "stop"

        kwargs = mock_client.chat.completions.create.call_args[1]
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 300
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "plant, fungus or else?"}
        assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,aGVsbG8="}}

    def test_images_only_attached_to_first_user_message(self, provider):
        messages = [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "first"},
            {"role": "user", "content": "second"},
        ]
        formatted = provider._format_messages(messages, [EncodedImage(base64_data="aGVsbG8=")])

        assert formatted[0] == messages[0]
        assert formatted[1]["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert formatted[2] == messages[2]

    def test_text_only_messages_untouched(self, provider):
        messages = [{"role": "user", "content": "hi"}]
        assert provider._format_messages(messages, []) is messages

    def test_timeout_maps_to_model_timeout(self, provider, mock_client, request_with_image):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = APITimeoutError(request=request)

        with pytest.raises(ModelTimeout):
            provider.chat(request_with_image)

    def test_retryable_status_maps_to_model_retryable(self, provider, mock_client, request_with_image):
        mock_client.chat.completions.create.side_effect = make_status_error(503)

        with pytest.raises(ModelRetryable):
            provider.chat(request_with_image)
        # single attempt by default
        assert mock_client.chat.completions.create.call_count == 1

    def test_auth_error_maps_to_model_error(self, provider, mock_client, request_with_image):
        mock_client.chat.completions.create.side_effect = make_status_error(401)

        with pytest.raises(ModelError) as exc_info:
            provider.chat(request_with_image)
        assert not isinstance(exc_info.value, ModelRetryable)

    def test_unexpected_error_maps_to_model_error(self, provider, mock_client, request_with_image):
        mock_client.chat.completions.create.side_effect = KeyError("boom")

        with pytest.raises(ModelError, match="OpenAI provider error"):
            provider.chat(request_with_image)

    def test_malformed_response(self, provider, mock_client, request_with_image):
        response = make_completion()
        response.choices = []
        mock_client.chat.completions.create.return_value = response

        with pytest.raises(ModelError, match="Invalid response structure"):
            provider.chat(request_with_image)

    def test_empty_message_content(self, provider, mock_client, request_with_image):
        mock_client.chat.completions.create.return_value = make_completion(content=None)

        with pytest.raises(ModelError, match="empty message"):
            provider.chat(request_with_image)

    def test_opt_in_retry(self, request_with_image):
        """
        Test: Retry when max_attempts > 1
        How: Fail once with a 503, then succeed
        Ensures: Retries happen only when explicitly configured
        """
        with patch('src.models.providers.openai_sdk.OpenAI'):
            provider = OpenAIProvider(api_key="sk-test", max_attempts=2)
        provider.client.chat.completions.create.side_effect = [make_status_error(503), make_completion("fungus")]

        with patch('tenacity.nap.time.sleep'):
            response = provider.chat(request_with_image)

        assert response.content == "fungus"
        assert provider.client.chat.completions.create.call_count == 2

    def test_is_retryable(self):
        assert _is_retryable(make_status_error(429))
        assert _is_retryable(ModelRetryable("x"))
        assert not _is_retryable(make_status_error(400))
        assert not _is_retryable(ModelError("x"))

    def test_cleanup_closes_client(self, provider, mock_client):
        provider.cleanup()
        mock_client.close.assert_called_once()
