"""Tests for request and one-shot response mapping."""

import pytest

from onemin_gateway.catalog import MODEL_CATALOG, get_model_info, list_models
from onemin_gateway.errors import AuthenticationError, ModelNotFoundError, ValidationError
from onemin_gateway.gateway.mapping import (
    build_transcript,
    chat_to_response,
    extract_api_key,
    responses_to_chat,
    to_upstream_request,
    upstream_model,
    upstream_to_chat_completion,
    validate_chat_body,
)
from onemin_gateway.tokens import CharacterEstimator


class TestExtractApiKey:
    """Tests for extract_api_key."""

    def test_bearer(self) -> None:
        """Test the key is taken from a Bearer header."""
        assert extract_api_key("Bearer sk-123") == "sk-123"

    @pytest.mark.parametrize("header", [None, "", "sk-123", "Basic abc", "Bearer   "])
    def test_missing(self, header) -> None:
        """Test missing or malformed headers are rejected."""
        with pytest.raises(AuthenticationError):
            extract_api_key(header)


class TestValidateChatBody:
    """Tests for validate_chat_body."""

    def test_valid(self) -> None:
        """Test a valid body is returned unchanged."""
        body = {"model": "gpt-4o", "messages": [{"role": "user", "content": "hi"}]}
        assert validate_chat_body(body) is body

    def test_not_object(self) -> None:
        """Test non-object bodies are rejected."""
        with pytest.raises(ValidationError):
            validate_chat_body(["x"])

    def test_missing_messages(self) -> None:
        """Test messages are required."""
        with pytest.raises(ValidationError) as exc_info:
            validate_chat_body({"model": "gpt-4o"})
        assert exc_info.value.context.field_path == "messages"

    def test_empty_messages(self) -> None:
        """Test messages cannot be empty."""
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_chat_body({"model": "gpt-4o", "messages": []})

    def test_missing_model(self) -> None:
        """Test model is required."""
        with pytest.raises(ValidationError) as exc_info:
            validate_chat_body({"messages": [{"role": "user", "content": "hi"}]})
        assert exc_info.value.context.field_path == "model"

    def test_unknown_model(self) -> None:
        """Test models outside the catalog are rejected."""
        with pytest.raises(ModelNotFoundError) as exc_info:
            validate_chat_body(
                {"model": "openai/gpt-9", "messages": [{"role": "user", "content": "hi"}]}
            )
        assert exc_info.value.model == "openai/gpt-9"
        assert exc_info.value.status_code == 400

    def test_non_object_message(self) -> None:
        """Test every message must be an object."""
        with pytest.raises(ValidationError, match="must be an object"):
            validate_chat_body({"model": "gpt-4o", "messages": ["hi"]})

    def test_image_requires_vision(self) -> None:
        """Test image content is rejected for models without vision support."""
        content = [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "https://example.test/a.png"}},
        ]
        body = {"model": "openai/gpt-4o", "messages": [{"role": "user", "content": content}]}
        assert validate_chat_body(body) is body

        body["model"] = "openai/deepseek-chat"
        with pytest.raises(ValidationError, match="does not support image inputs"):
            validate_chat_body(body)


class TestModelCatalog:
    """Tests for the model catalog."""

    def test_prefixed_id(self) -> None:
        """Test lookup by public id."""
        info = get_model_info("openai/claude-3-haiku-20240307")
        assert info is not None
        assert info.name == "claude-3-haiku-20240307"
        assert info.provider == "anthropic"
        assert info.vision

    def test_bare_name(self) -> None:
        """Test a name without the prefix resolves to the same entry."""
        assert get_model_info("gpt-4o") is get_model_info("openai/gpt-4o")

    def test_alias(self) -> None:
        """Test aliases resolve to their target entry."""
        assert get_model_info("openai/deepseek").name == "deepseek-chat"
        assert get_model_info("gpt-3.5-turbo").name == "gpt-3.5-turbo-0125"

    def test_unknown(self) -> None:
        """Test unknown ids are not found."""
        assert get_model_info("openai/gpt-9") is None
        assert get_model_info("") is None

    def test_list_models(self) -> None:
        """Test the catalog renders as an OpenAI model list."""
        listing = list_models()
        assert listing["object"] == "list"
        assert len(listing["data"]) == len(MODEL_CATALOG)

        entry = next(m for m in listing["data"] if m["id"] == "openai/mistral-nemo")
        assert entry["object"] == "model"
        assert entry["owned_by"] == "mistral"
        assert entry["root"] == "openai/mistral-nemo"
        assert entry["parent"] is None
        assert isinstance(entry["created"], int)


class TestUpstreamRequest:
    """Tests for upstream request building."""

    def test_upstream_model(self) -> None:
        """Test public ids map to the upstream identifier."""
        assert upstream_model("openai/gpt-4o") == "gpt-4o"
        assert upstream_model("gpt-4o") == "gpt-4o"
        assert upstream_model("openai/meta/llama-2-70b-chat") == "meta/llama-2-70b-chat"
        assert upstream_model("openai/gpt-4") == "gpt-4o"

    def test_transcript(self) -> None:
        """Test role labels and content parts."""
        transcript = build_transcript(
            [
                {"role": "system", "content": "Be brief"},
                {"role": "user", "content": [{"type": "text", "text": "Hi"}]},
                {"role": "assistant", "content": "Hello"},
                {"role": "tool", "content": "raw"},
            ]
        )
        assert transcript == "System: Be brief\n\nHuman: Hi\n\nAssistant: Hello\n\nraw"

    def test_payload(self) -> None:
        """Test the CHAT_WITH_AI payload."""
        payload = to_upstream_request(
            {
                "model": "openai/gpt-4o",
                "messages": [{"role": "user", "content": "Hi"}],
                "stream": True,
                "temperature": 0.2,
                "max_tokens": 64,
            }
        )
        assert payload == {
            "type": "CHAT_WITH_AI",
            "model": "gpt-4o",
            "promptObject": {"prompt": "Human: Hi", "isMixed": False, "webSearch": False},
            "stream": True,
            "temperature": 0.2,
            "maxTokens": 64,
        }

    def test_payload_optional_fields_omitted(self) -> None:
        """Test unset sampling fields are not sent."""
        payload = to_upstream_request(
            {"model": "gpt-4o", "messages": [{"role": "user", "content": "Hi"}]}
        )
        assert payload["stream"] is False
        assert "temperature" not in payload
        assert "maxTokens" not in payload


class TestResponsesToChat:
    """Tests for responses_to_chat."""

    def test_string_input(self) -> None:
        """Test instructions and a plain string input."""
        chat = responses_to_chat(
            {"model": "gpt-4o", "instructions": "Be brief", "input": "Hi", "stream": True}
        )
        assert chat["messages"] == [
            {"role": "system", "content": "Be brief"},
            {"role": "user", "content": "Hi"},
        ]
        assert chat["stream"] is True

    def test_list_input(self) -> None:
        """Test list input of strings and role items."""
        chat = responses_to_chat(
            {
                "model": "gpt-4o",
                "input": ["a", {"role": "assistant", "content": "b"}, {"role": "user"}],
                "max_output_tokens": 5,
                "max_completion_tokens": 7,
            }
        )
        assert [m["content"] for m in chat["messages"]] == ["a", "b"]
        assert chat["max_tokens"] == 5

    def test_not_object(self) -> None:
        """Test non-object bodies are rejected."""
        with pytest.raises(ValidationError):
            responses_to_chat("hi")


class TestOneShotMapping:
    """Tests for one-shot result mapping."""

    def test_chat_completion(self) -> None:
        """Test the upstream result text becomes the assistant message."""
        data = {
            "aiRecord": {
                "model": "gpt-4o",
                "aiRecordDetail": {"resultObject": ["Hello there!"]},
            }
        }
        chat = upstream_to_chat_completion(
            data, prompt_tokens=5, counter=CharacterEstimator(), default_model="d"
        )
        assert chat["id"].startswith("chatcmpl-")
        assert chat["object"] == "chat.completion"
        assert chat["model"] == "gpt-4o"
        assert chat["choices"][0]["message"] == {"role": "assistant", "content": "Hello there!"}
        assert chat["choices"][0]["finish_reason"] == "stop"
        assert chat["usage"] == {"prompt_tokens": 5, "completion_tokens": 3, "total_tokens": 8}

    def test_missing_result(self) -> None:
        """Test a result without text maps to empty content."""
        chat = upstream_to_chat_completion(
            {}, prompt_tokens=1, counter=CharacterEstimator(), default_model="d"
        )
        assert chat["model"] == "d"
        assert chat["choices"][0]["message"]["content"] == ""
        assert chat["usage"]["completion_tokens"] == 0

    def test_chat_to_response(self) -> None:
        """Test a chat completion maps to a response object."""
        chat = upstream_to_chat_completion(
            {"aiRecord": {"aiRecordDetail": {"resultObject": ["Hi"]}}},
            prompt_tokens=1,
            counter=CharacterEstimator(),
            default_model="m",
        )
        response = chat_to_response(chat)
        assert response["id"] == "resp-" + chat["id"][len("chatcmpl-") :]
        assert response["object"] == "response"
        assert response["status"] == "completed"
        assert response["output"][0]["content"] == "Hi"
        assert response["output"][0]["role"] == "assistant"
        assert response["usage"] == chat["usage"]
