from typing import Any, Dict, Optional, Type
from ..exceptions import ConfigurationError
from .base_provider import BaseLLMProvider, LLMConfig
from .openai_provider import OpenAIProvider
from .edenai_provider import EdenAIProvider
from .ollama_provider import OllamaProvider
from .model_catalog import resolve_model

class LLMProviderFactory:
    _providers: Dict[str, Type[BaseLLMProvider]] = {
        "openai": OpenAIProvider,
        "edenai": EdenAIProvider,
        "ollama": OllamaProvider
    }
    
    @classmethod
    def create_provider(cls, config: LLMConfig) -> BaseLLMProvider:
        provider_class = cls._providers.get(config.provider)
        if not provider_class:
            raise ConfigurationError(f"Unsupported provider: {config.provider}")
        
        provider = provider_class(config)
        if not provider.validate_config():
            raise ConfigurationError(f"Invalid configuration for {config.provider}")
        
        return provider

    @classmethod
    def create_for_model(cls, model_id: Optional[str], config: Optional[Dict[str, Any]] = None) -> BaseLLMProvider:
        """Create the provider behind a catalog model id"""
        return cls.create_provider(resolve_model(model_id, config))
    
    @classmethod
    def register_provider(cls, name: str, provider_class: Type[BaseLLMProvider]):
        """Register custom provider"""
        cls._providers[name] = provider_class
