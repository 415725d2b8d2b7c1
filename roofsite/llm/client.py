"""
LLM client factory

Creates appropriate LLM instances based on provider configuration.
"""

from typing import Optional
from loguru import logger

from roofsite.config.settings import settings


def create_llm(temperature: Optional[float] = None, max_completion_tokens: Optional[int] = None, model: Optional[str] = None):
    """
    Factory function to create appropriate LLM based on provider configuration.

    Args:
        temperature: Generation temperature (defaults to settings.openai_temperature)
        max_completion_tokens: Max tokens for completion (defaults to settings.max_output_tokens)
        model: Model name (defaults to provider-specific model)

    Returns:
        LangChain ChatModel instance (ChatOpenAI or ChatOllama)
    """
    provider = settings.llm_provider.lower()
    max_tokens = max_completion_tokens or settings.max_output_tokens
    temperature = temperature if temperature is not None else settings.openai_temperature

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")

        kwargs = {}
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url

        return ChatOpenAI(
            model=model or settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=temperature,
            max_completion_tokens=max_tokens,
            # Upstream 429/402 must reach the caller untouched
            max_retries=0,
            **kwargs,
        )

    elif provider == "ollama":
        try:
            from langchain_community.chat_models import ChatOllama
        except ImportError:
            raise ImportError(
                "Ollama support requires 'langchain-community'. "
                "Install it with: pip install 'roofsite[ollama]'"
            )

        logger.debug(f"Using Ollama at {settings.ollama_base_url} with model {model or settings.ollama_model}")
        return ChatOllama(
            model=model or settings.ollama_model,
            base_url=settings.ollama_base_url,
            temperature=temperature,
            num_predict=max_tokens,  # Ollama uses num_predict instead of max_completion_tokens
        )

    else:
        raise ValueError(f"Unsupported LLM provider: {provider}. Supported: 'openai', 'ollama'")


def upstream_status(error: BaseException) -> Optional[int]:
    """
    HTTP status carried by a provider exception, if any.

    openai.APIStatusError exposes ``status_code``; httpx.HTTPStatusError
    exposes ``response.status_code``.
    """
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None
