"""Constants for the rotation module."""

# Lower-cased message fragments that mark a credential-specific failure
RETRYABLE_ERROR_MARKERS: tuple[str, ...] = (
    "quota",
    "429",
    "resource exhausted",
    "resource_exhausted",
    "api key not valid",
    "api_key_invalid",
)

# Trailing characters of a credential shown in logs and status output
MASK_VISIBLE_CHARS = 4
