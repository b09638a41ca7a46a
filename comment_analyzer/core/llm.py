"""
Text-completion calls backed by a langchain chat model.
"""

import os
from typing import Optional, Protocol

from langchain_core.prompts import ChatPromptTemplate
from langchain.chat_models import init_chat_model

from comment_analyzer.config import config
from comment_analyzer.utils.error_handling import ConfigurationError


class CompletionModel(Protocol):
    """Anything that turns a system prompt plus user text into a completion."""

    async def complete(self, system_prompt: str, text: str) -> str:
        ...


class ChatCompletion:
    """Class to handle chat completion calls."""

    def __init__(self, model: str, temperature: float = 0.0, max_tokens: int = 1024,
                 provider: str = config.LLM_PROVIDER, api_key: Optional[str] = None):
        """
        Initialize the chat model.

        Args:
            model: Model name
            temperature: Sampling temperature
            max_tokens: Maximum completion tokens
            provider: langchain model provider
            api_key: Groq API key (if None, will try to get from environment)
        """
        self.api_key = api_key or os.getenv("GROQ_API_KEY")
        if provider == "groq" and not self.api_key:
            raise ConfigurationError("Groq API key is required. Set it in .env file or pass directly.")

        kwargs = {"api_key": self.api_key} if self.api_key else {}
        self.llm = init_chat_model(
            model=model,
            model_provider=provider,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs
        )

    async def complete(self, system_prompt: str, text: str) -> str:
        """
        Run one completion.

        Args:
            system_prompt: Instructions (literal text, braces are escaped)
            text: User content

        Returns:
            The model's reply text
        """
        escaped = system_prompt.replace("{", "{{").replace("}", "}}")
        prompt = ChatPromptTemplate.from_messages([
            ("system", escaped),
            ("human", "{text}")
        ])
        chain = prompt | self.llm
        response = await chain.ainvoke({"text": text})
        return response.content
