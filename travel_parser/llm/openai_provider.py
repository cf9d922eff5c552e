from typing import Optional
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from .base_provider import BaseLLMProvider, LLMConfig

class OpenAIProvider(BaseLLMProvider):
    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self.client = ChatOpenAI(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
            api_key=config.api_key,
            base_url=config.base_url,
        )
    
    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))
        try:
            response = self.client.invoke(messages)
            return response.content
        except Exception as e:
            raise RuntimeError(f"OpenAI API error: {str(e)}") from e
    
    def validate_config(self) -> bool:
        return bool(self.config.api_key and self.config.model)
