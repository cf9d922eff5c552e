from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel

class LLMConfig(BaseModel):
    provider: str
    model: str
    temperature: float = 0.0
    max_tokens: int = 2048
    timeout: int = 300
    api_key: Optional[str] = None
    base_url: Optional[str] = None

class BaseLLMProvider(ABC):
    def __init__(self, config: LLMConfig):
        self.config = config
    
    @abstractmethod
    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate a completion for a user prompt under an optional system instruction"""
        pass
    
    @abstractmethod
    def validate_config(self) -> bool:
        """Validate provider configuration"""
        pass
