"""
Request and one-shot response mapping between the OpenAI-compatible surface
and the upstream feature API.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING, Any

from onemin_gateway.catalog import get_model_info
from onemin_gateway.errors import AuthenticationError, ModelNotFoundError, ValidationError
from onemin_gateway.pipeline.responses import to_response_id
from onemin_gateway.types.events import CHAT_ID_PREFIX, Usage

if TYPE_CHECKING:
    from onemin_gateway.tokens import TokenCounter

_ROLE_LABELS = {
    "system": "System",
    "user": "Human",
    "assistant": "Assistant",
}


def extract_api_key(authorization: str | None) -> str:
    """Return the client key from a ``Bearer`` Authorization header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError(
            "Missing API key. Provide it as 'Authorization: Bearer <key>'"
        )
    key = authorization[len("Bearer ") :].strip()
    if not key:
        raise AuthenticationError()
    return key


def _has_image(message: dict[str, Any]) -> bool:
    content = message.get("content")
    return isinstance(content, list) and any(
        isinstance(part, dict) and part.get("type") in ("image_url", "image") for part in content
    )


def validate_chat_body(body: Any) -> dict[str, Any]:
    """Check the fields the gateway relies on.

    Raises:
        ValidationError: If the body is not an object, messages are missing,
            empty or not objects, the model is missing, or image content is
            sent to a model without vision support
        ModelNotFoundError: If the model is not in the catalog
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    messages = body.get("messages")
    if not isinstance(messages, list):
        raise ValidationError("Missing required parameter: messages", field="messages")
    if not messages:
        raise ValidationError("Messages array cannot be empty", field="messages")
    if not all(isinstance(message, dict) for message in messages):
        raise ValidationError("Each message must be an object", field="messages")

    model = body.get("model")
    if not isinstance(model, str) or not model:
        raise ValidationError("Missing required parameter: model", field="model")

    info = get_model_info(model)
    if info is None:
        raise ModelNotFoundError(model)
    if not info.vision and any(_has_image(message) for message in messages):
        raise ValidationError(f"Model '{model}' does not support image inputs", field="model")

    return body


def upstream_model(model: str) -> str:
    """Upstream identifier for a public model id (``openai/gpt-4o`` -> ``gpt-4o``)."""
    info = get_model_info(model)
    return info.name if info else model


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(
            part["text"]
            for part in content
            if isinstance(part, dict) and part.get("type") == "text" and part.get("text")
        )
    return "" if content is None else str(content)


def build_transcript(messages: list[dict[str, Any]]) -> str:
    """Flatten chat messages into the upstream prompt transcript."""
    lines = []
    for message in messages:
        text = _message_text(message.get("content"))
        label = _ROLE_LABELS.get(message.get("role", ""))
        lines.append(f"{label}: {text}" if label else text)
    return "\n\n".join(lines)


def to_upstream_request(body: dict[str, Any]) -> dict[str, Any]:
    """Build the upstream ``CHAT_WITH_AI`` payload from a chat request."""
    payload: dict[str, Any] = {
        "type": "CHAT_WITH_AI",
        "model": upstream_model(body["model"]),
        "promptObject": {
            "prompt": build_transcript(body["messages"]),
            "isMixed": False,
            "webSearch": False,
        },
        "stream": bool(body.get("stream", False)),
    }
    if body.get("temperature") is not None:
        payload["temperature"] = body["temperature"]
    if body.get("max_tokens") is not None:
        payload["maxTokens"] = body["max_tokens"]
    return payload


def responses_to_chat(body: Any) -> dict[str, Any]:
    """Convert a Responses-API request body into a chat request body."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    messages: list[dict[str, Any]] = []
    if body.get("instructions"):
        messages.append({"role": "system", "content": body["instructions"]})

    items = body.get("input")
    if isinstance(items, str):
        items = [items]
    for item in items or []:
        if isinstance(item, str):
            messages.append({"role": "user", "content": item})
        elif isinstance(item, dict) and item.get("role") and item.get("content"):
            messages.append({"role": item["role"], "content": item["content"]})

    return {
        "model": body.get("model"),
        "messages": messages,
        "stream": bool(body.get("stream", False)),
        "temperature": body.get("temperature"),
        "max_tokens": (
            body.get("max_output_tokens")
            or body.get("max_tokens")
            or body.get("max_completion_tokens")
        ),
    }


def upstream_to_chat_completion(
    data: dict[str, Any],
    *,
    prompt_tokens: int,
    counter: TokenCounter,
    default_model: str,
) -> dict[str, Any]:
    """Map a one-shot upstream result to a ``chat.completion`` object."""
    record = data.get("aiRecord") or {}
    results = (record.get("aiRecordDetail") or {}).get("resultObject") or []
    text = results[0] if results and isinstance(results[0], str) else ""
    usage = Usage.from_counts(prompt_tokens, counter.count(text))

    return {
        "id": f"{CHAT_ID_PREFIX}{uuid.uuid4().hex}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": record.get("model") or default_model,
        "system_fingerprint": None,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "logprobs": None,
                "finish_reason": "stop",
            }
        ],
        "usage": usage.model_dump(),
    }


def chat_to_response(chat: dict[str, Any]) -> dict[str, Any]:
    """Map a ``chat.completion`` object to a Responses-API ``response``."""
    output = [
        {
            "id": f"msg-{uuid.uuid4().hex}",
            "object": "response.message",
            "role": choice["message"]["role"],
            "content": choice["message"]["content"],
            "finish_reason": choice.get("finish_reason"),
        }
        for choice in chat.get("choices", [])
    ]
    return {
        "id": to_response_id(chat["id"]),
        "object": "response",
        "created": chat["created"],
        "model": chat["model"],
        "status": "completed",
        "output": output,
        "usage": chat.get("usage"),
    }
