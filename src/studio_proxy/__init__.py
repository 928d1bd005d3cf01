"""GenAI Studio Proxy - Gemini content-studio backend with API-key rotation."""

from ._version import __version__


__all__ = ["__version__"]
