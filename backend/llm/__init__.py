"""
LLM module

Provides the streaming LLMClient and planning prompt assembly.
Services should use get_llm_client() instead of creating LLMClient instances directly.
"""

from .client import LLMClient, TextStreamer, get_llm_client
from .prompts import build_system_prompt

__all__ = [
    "LLMClient",
    "TextStreamer",
    "get_llm_client",
    "build_system_prompt",
]
