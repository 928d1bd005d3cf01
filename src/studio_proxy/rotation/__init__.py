"""API-key rotation module for the studio proxy.

This module provides failover between the configured Gemini API keys when
a key runs out of quota, is rate limited or is rejected as invalid.
"""

from studio_proxy.rotation.classifier import (
    ErrorVerdict,
    RetryPredicate,
    classify_error,
    error_message,
    is_retryable_error,
)
from studio_proxy.rotation.pool import (
    CredentialPool,
    build_credential_pool,
    mask_credential,
)
from studio_proxy.rotation.rotator import CredentialRotator


__all__ = [
    "CredentialPool",
    "CredentialRotator",
    "ErrorVerdict",
    "RetryPredicate",
    "build_credential_pool",
    "classify_error",
    "error_message",
    "is_retryable_error",
    "mask_credential",
]
