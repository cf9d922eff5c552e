import os
from typing import Any, Dict, List, Optional

from .base_provider import LLMConfig
from ..exceptions import UnknownModelError

DEFAULT_MODEL_ID = "ollama-qwen3-32b"

# model id -> (provider, provider model name, display name)
MODEL_CATALOG: Dict[str, Dict[str, str]] = {
    "ollama-gpt-oss-20b": {"provider": "ollama", "model": "gpt-oss:20b", "name": "GPT-OSS 20B"},
    "ollama-gpt-oss-120b": {"provider": "ollama", "model": "gpt-oss:120b", "name": "GPT-OSS 120B"},
    "ollama-qwen3-32b": {"provider": "ollama", "model": "qwen3:32b", "name": "Qwen3 32B"},
    "ollama-deepcoder-14b": {"provider": "ollama", "model": "deepcoder:14b", "name": "DeepCoder 14B"},
    "ollama-phi4-14b": {"provider": "ollama", "model": "phi4:14b", "name": "Phi-4 14B"},
    "anthropic-claude-3-5-sonnet": {
        "provider": "edenai", "model": "anthropic/claude-3-5-sonnet-20241022", "name": "Claude 3.5 Sonnet"
    },
    "anthropic-claude-3-5-haiku": {
        "provider": "edenai", "model": "anthropic/claude-3-5-haiku-20241022", "name": "Claude 3.5 Haiku"
    },
    "anthropic-claude-3-opus": {
        "provider": "edenai", "model": "anthropic/claude-3-opus-20240229", "name": "Claude 3 Opus"
    },
    "openai-gpt-4o-mini": {"provider": "openai", "model": "gpt-4o-mini", "name": "GPT-4o mini"},
}

_API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "edenai": "EDENAI_API_KEY",
}


def available_models(config: Optional[Dict[str, Any]] = None) -> Dict[str, Dict[str, str]]:
    """Built-in catalog merged with any `models` entries from config"""
    catalog = dict(MODEL_CATALOG)
    catalog.update((config or {}).get('models', {}) or {})
    return catalog


def list_models(config: Optional[Dict[str, Any]] = None) -> List[Dict[str, str]]:
    return [
        {"id": model_id, "name": entry.get("name", model_id), "provider": entry["provider"]}
        for model_id, entry in available_models(config).items()
    ]


def resolve_model(model_id: Optional[str], config: Optional[Dict[str, Any]] = None) -> LLMConfig:
    """Turn an opaque model id into a provider configuration"""
    config = config or {}
    model_id = model_id or config.get('default_model', DEFAULT_MODEL_ID)
    entry = available_models(config).get(model_id)
    if entry is None:
        raise UnknownModelError(f"Unknown model id: {model_id}")

    provider = entry["provider"]
    api_key = entry.get("api_key")
    if api_key is None and provider in _API_KEY_ENV:
        api_key = os.getenv(_API_KEY_ENV[provider])

    base_url = entry.get("base_url")
    if base_url is None and provider == "ollama":
        base_url = config.get('ollama_base_url') or os.getenv("OLLAMA_BASE_URL")

    return LLMConfig(
        provider=provider,
        model=entry["model"],
        temperature=config.get('temperature', 0.0),
        max_tokens=config.get('max_tokens', 2048),
        timeout=config.get('timeout', 300),
        api_key=api_key,
        base_url=base_url,
    )
