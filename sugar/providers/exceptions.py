"""Provider-agnostic exceptions raised by cloud provider adapters."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for cloud provider failures."""


class ProviderCredentialsError(ProviderError):
    """Provider credentials are missing or rejected."""


class ProviderConnectionError(ProviderError):
    """The provider endpoint could not be reached."""


class ProviderAPIError(ProviderError):
    """The provider API returned an error response.

    Parameters
    ----------
    message : str
        Human-readable error description
    error_code : str | None
        Provider-specific error code (e.g. ``UnauthorizedOperation``)
    operation : str | None
        Name of the API operation that failed
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.operation = operation
