"""Language model providers for SQL generation.

Example:
    >>> from sqlassist.llm import get_provider
    >>>
    >>> provider = get_provider("gemini", api_key="...")
    >>> envelope = provider.generate("Generate a SQL query that ...")
"""

from sqlassist.llm.provider import ModelProvider

__all__ = [
    "ModelProvider",
    "get_provider",
]


def get_provider(
    provider: str | ModelProvider = "gemini",
    **kwargs: object,
) -> ModelProvider:
    """Get a model provider by name or return the provider if already instantiated.

    Args:
        provider: Provider name ("gemini", "openai") or ModelProvider instance.
        **kwargs: Additional arguments passed to the provider constructor.

    Returns:
        ModelProvider instance.

    Raises:
        ValueError: If provider name is unknown.
        ConfigurationError: If the provider is missing its API key.

    Example:
        >>> provider = get_provider("gemini")
        >>> provider = get_provider("openai", api_key="sk-...")
        >>> provider = get_provider(MyCustomProvider())
    """
    if isinstance(provider, ModelProvider):
        return provider

    if provider == "gemini":
        from sqlassist.llm.gemini import GeminiProvider

        return GeminiProvider(**kwargs)  # type: ignore[arg-type]
    elif provider == "openai":
        from sqlassist.llm.openai import OpenAIChatProvider

        return OpenAIChatProvider(**kwargs)  # type: ignore[arg-type]
    else:
        raise ValueError(f"Unknown model provider: {provider}. Available: 'gemini', 'openai'")
