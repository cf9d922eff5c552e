import requests
from typing import Any, Dict, List, Optional
from .base_provider import BaseLLMProvider, LLMConfig
from ..exceptions import ConfigurationError
import logging

logger = logging.getLogger(__name__)

EDENAI_CHAT_URL = "https://api.edenai.run/v2/llm/chat"


class EdenAIProvider(BaseLLMProvider):
    """Hosted models (Anthropic, OpenAI, ...) through the EdenAI chat API.

    Model names are "<vendor>/<model>", e.g. "anthropic/claude-3-5-haiku-20241022";
    a bare model name is sent to openai.
    """

    def __init__(self, config: LLMConfig):
        super().__init__(config)

        if not config.api_key:
            raise ConfigurationError("API key is required for EdenAI provider")

        self.vendor, _, self.model = config.model.rpartition("/")
        self.vendor = self.vendor or "openai"
        self.base_url = config.base_url or EDENAI_CHAT_URL
        self.headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        try:
            response = requests.post(
                self.base_url,
                headers=self.headers,
                json=self._build_payload(prompt, system_prompt),
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return self._read_content(response.json())
        except requests.exceptions.RequestException as e:
            logger.error(f"EdenAI API request failed: {e}")
            raise RuntimeError(f"EdenAI API error: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"EdenAI response parsing error: {e}")
            raise RuntimeError(f"Failed to parse EdenAI response: {e}") from e

    def _build_payload(self, prompt: str, system_prompt: Optional[str]) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return {
            "providers": self.vendor,
            "model": self.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    def _read_content(self, result: Dict[str, Any]) -> str:
        # OpenAI-compatible chat format
        choices = result.get("choices") or []
        if choices:
            content = choices[0].get("message", {}).get("content")
            if content:
                return content

        # Legacy per-vendor format
        vendor_result = result.get(self.vendor)
        if isinstance(vendor_result, dict) and vendor_result.get("generated_text"):
            return vendor_result["generated_text"]

        raise ValueError(f"Unexpected response format: {result}")

    def validate_config(self) -> bool:
        return bool(self.config.api_key and self.model)
