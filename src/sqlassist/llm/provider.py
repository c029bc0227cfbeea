"""Language model provider interface."""

from abc import ABC, abstractmethod


class ModelProvider(ABC):
    """Interface for language model providers.

    A provider sends prompt text to a model service and returns the response
    envelope exactly as the service produced it. Interpreting the envelope is
    left to the envelope parser named by ``envelope_format``.
    """

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send a prompt to the model.

        Args:
            prompt: Prompt text.
            system_prompt: Optional system instruction sent alongside the prompt.

        Returns:
            Raw response envelope text.

        Raises:
            ModelError: If the service is unreachable, times out or answers
                with a non-2xx status.
        """
        ...

    @property
    @abstractmethod
    def envelope_format(self) -> str:
        """Name of the envelope parser for this provider's responses."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""
        ...
