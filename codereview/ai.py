"""
Model client interface.

The review pipeline consumes the generative model through this narrow
seam only: one prompt in, content segments out, failures raised as
classified InvokeError subclasses.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field


class ModelReply(BaseModel):
    """Raw reply from a model backend."""

    segments: list[str] = Field(default_factory=list, description="Text content segments in order")
    stop_reason: Optional[str] = Field(None, description="Backend stop reason")
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)


class AI(ABC):
    """Abstract generative model client."""

    @abstractmethod
    def complete(self, prompt: str, max_output_tokens: int, temperature: float) -> ModelReply:
        """
        Send a single user prompt to the model.

        Args:
            prompt: Full prompt text
            max_output_tokens: Upper bound on generated tokens
            temperature: Sampling temperature in [0, 1]

        Returns:
            ModelReply with zero or more content segments

        Raises:
            InvokeTransportError: If the backend could not be reached or answered unreadably
            Rejected: If the backend refused the request
        """
        pass
