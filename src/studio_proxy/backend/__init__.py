"""Generative-AI backend client."""

from studio_proxy.backend.gemini import (
    GeminiClient,
    extract_inline_data,
    extract_text,
)


__all__ = ["GeminiClient", "extract_inline_data", "extract_text"]
