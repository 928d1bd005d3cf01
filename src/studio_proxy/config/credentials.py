"""Credential slot configuration.

The studio reads its Gemini API keys from a fixed set of named slots.
Absent or blank slots are dropped when the credential pool is built.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


CREDENTIAL_SLOTS: tuple[str, ...] = ("CLE_1", "CLE_2", "CLE_3")


class CredentialSettings(BaseSettings):
    """API key slots, read once at process start."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    cle_1: str | None = Field(default=None, description="First API key slot")
    cle_2: str | None = Field(default=None, description="Second API key slot")
    cle_3: str | None = Field(default=None, description="Third API key slot")

    def candidates(self) -> list[str | None]:
        """Return raw slot values in slot order, blanks included."""
        return [self.cle_1, self.cle_2, self.cle_3]
