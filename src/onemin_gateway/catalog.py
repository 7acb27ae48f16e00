"""
Model catalog for the upstream chat feature.

Maps public model ids (``openai/<name>``) to the identifiers the upstream
expects, and renders the OpenAI-style model list.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

MODEL_ID_PREFIX = "openai/"


@dataclass(frozen=True)
class ModelInfo:
    """Catalog entry for a chat model.

    Attributes:
        name: Upstream model identifier
        provider: Owning provider, reported as ``owned_by``
        vision: Whether the model accepts image content
    """

    name: str
    provider: str
    vision: bool = False


def _models(provider: str, *names: str, vision: bool = False) -> dict[str, ModelInfo]:
    return {
        f"{MODEL_ID_PREFIX}{name}": ModelInfo(name=name, provider=provider, vision=vision)
        for name in names
    }


# Chat models, keyed by public id
MODEL_CATALOG: dict[str, ModelInfo] = {
    **_models(
        "openai",
        "o3-mini",
        "o1-preview",
        "o1-mini",
        "gpt-4",
        "gpt-4-0613",
        "gpt-4-0314",
        "gpt-3.5-turbo",
        "gpt-3.5-turbo-0125",
        "gpt-3.5-turbo-1106",
        "gpt-5",
        "gpt-5-chat-latest",
        "gpt-5.1-codex",
        "gpt-5.1-codex-mini",
        "o3",
    ),
    **_models(
        "openai",
        "gpt-4o",
        "gpt-4o-2024-11-20",
        "gpt-4o-2024-08-06",
        "gpt-4o-2024-05-13",
        "gpt-4o-mini",
        "gpt-4o-mini-2024-07-18",
        "gpt-4-turbo",
        "gpt-4-turbo-2024-04-09",
        "gpt-4-turbo-preview",
        "gpt-4-vision-preview",
        vision=True,
    ),
    **_models("anthropic", "claude-instant-1.2", "claude-2.1"),
    **_models(
        "anthropic",
        "claude-3-5-sonnet-20241022",
        "claude-3-5-sonnet-20240620",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
        "claude-sonnet-4-5-20250929",
        "claude-sonnet-4-20250514",
        "claude-opus-4-5-20251101",
        "claude-opus-4-1-20250805",
        "claude-haiku-4-5-20251001",
        vision=True,
    ),
    **_models("google", "gemini-1.0-pro", "chat-bison@002"),
    **_models(
        "google",
        "gemini-1.5-pro",
        "gemini-1.5-pro-002",
        "gemini-1.5-flash",
        "gemini-1.5-flash-002",
        "gemini-1.5-flash-8b",
        "gemini-3-pro-preview",
        vision=True,
    ),
    **_models(
        "meta",
        "llama-3.2-90b-vision-instruct",
        "llama-3.2-11b-vision-instruct",
        vision=True,
    ),
    **_models(
        "meta",
        "llama-3.1-405b-instruct",
        "llama-3.1-70b-instruct",
        "llama-3.1-8b-instruct",
        "meta/llama-2-70b-chat",
        "meta/meta-llama-3-70b-instruct",
        "meta/meta-llama-3.1-405b-instruct",
    ),
    **_models(
        "mistral",
        "mistral-large-latest",
        "mistral-large-2407",
        "mistral-large-2402",
        "mistral-small-latest",
        "mistral-small-2409",
        "mistral-nemo",
        "open-mixtral-8x22b",
        "open-mixtral-8x7b",
        "open-mistral-7b",
        "codestral-2405",
        "mistralai/mixtral-8x7b-instruct-v0.1",
    ),
    **_models("mistral", "pixtral-12b", vision=True),
    **_models("deepseek", "deepseek-chat", "deepseek-reasoner"),
    **_models("alibaba", "qwen3-coder-plus", "qwen3-coder-flash"),
    **_models("cohere", "command"),
    **_models("xai", "grok-2", "grok-code-fast-1"),
}

# Short public ids resolved to a catalog entry
MODEL_ALIASES: dict[str, str] = {
    "openai/gpt-4": "openai/gpt-4o",
    "openai/gpt-3.5-turbo": "openai/gpt-3.5-turbo-0125",
    "openai/claude-instant": "openai/claude-instant-1.2",
    "openai/claude-2": "openai/claude-2.1",
    "openai/claude-3-opus": "openai/claude-3-opus-20240229",
    "openai/claude-3-sonnet": "openai/claude-3-sonnet-20240229",
    "openai/claude-3-haiku": "openai/claude-3-haiku-20240307",
    "openai/gemini": "openai/gemini-1.5-pro",
    "openai/gemini-pro": "openai/gemini-1.0-pro",
    "openai/mistral-large": "openai/mistral-large-latest",
    "openai/mistral-small": "openai/mistral-small-latest",
    "openai/claude-4-5": "openai/claude-sonnet-4-5-20250929",
    "openai/deepseek": "openai/deepseek-chat",
}


def get_model_info(model: str) -> ModelInfo | None:
    """Look up a model by public id.

    Aliases are resolved first. A bare name without the ``openai/`` prefix is
    looked up as if it carried it.

    Args:
        model: Public model id

    Returns:
        ModelInfo or None if the model is not in the catalog
    """
    candidates = [model]
    if not model.startswith(MODEL_ID_PREFIX):
        candidates.append(f"{MODEL_ID_PREFIX}{model}")

    for candidate in candidates:
        resolved = MODEL_ALIASES.get(candidate, candidate)
        if resolved in MODEL_CATALOG:
            return MODEL_CATALOG[resolved]
    return None


def list_models() -> dict[str, Any]:
    """Render the catalog as an OpenAI ``list`` object."""
    created = int(time.time())
    return {
        "object": "list",
        "data": [
            {
                "id": model_id,
                "object": "model",
                "created": created,
                "owned_by": info.provider,
                "permission": [],
                "root": model_id,
                "parent": None,
            }
            for model_id, info in MODEL_CATALOG.items()
        ],
    }
