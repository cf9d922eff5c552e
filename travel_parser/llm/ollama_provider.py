from typing import Optional
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from .base_provider import BaseLLMProvider, LLMConfig

class OllamaProvider(BaseLLMProvider):
    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self.client = ChatOllama(
            model=config.model,
            base_url=config.base_url or "http://localhost:11434",
            temperature=config.temperature,
            num_predict=config.max_tokens,
            client_kwargs={"timeout": config.timeout},
        )
    
    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        try:
            return self.client.invoke(messages).content
        except Exception as e:
            raise RuntimeError(f"Ollama API error: {str(e)}") from e
    
    def validate_config(self) -> bool:
        return bool(self.config.model)
