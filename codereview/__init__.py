"""
Code review generation package.

Prompt construction, the model client interface, the Bedrock Claude
client, and the model invoker.
"""

from .ai import AI, ModelReply
from .invoker import ModelInvoker, ModelSettings
from .prompt import REVIEW_DIRECTIVE, build_prompt

__all__ = [
    "AI",
    "ModelReply",
    "ModelInvoker",
    "ModelSettings",
    "REVIEW_DIRECTIVE",
    "build_prompt",
]
