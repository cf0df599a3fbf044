"""Cloud provider adapters."""

from __future__ import annotations

from sugar.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
)

__all__ = [
    "ProviderError",
    "ProviderCredentialsError",
    "ProviderAPIError",
    "ProviderConnectionError",
]
