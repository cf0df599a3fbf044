"""Translation of botocore exceptions into provider exceptions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

from sugar.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
    ProviderError,
)

CREDENTIAL_ERROR_CODES = frozenset(
    (
        "AuthFailure",
        "InvalidClientTokenId",
        "UnrecognizedClientException",
        "SignatureDoesNotMatch",
    )
)
"""API error codes meaning the credentials themselves were rejected."""


@contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Re-raise botocore failures as provider exceptions.

    Raises
    ------
    ProviderCredentialsError
        If credentials are missing, incomplete or rejected
    ProviderConnectionError
        If the endpoint cannot be reached
    ProviderAPIError
        If the API returns any other error response
    ProviderError
        For any other botocore failure
    """
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as e:
        raise ProviderCredentialsError(str(e)) from e
    except EndpointConnectionError as e:
        raise ProviderConnectionError(str(e)) from e
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or str(e)
        if code in CREDENTIAL_ERROR_CODES:
            raise ProviderCredentialsError(message) from e
        raise ProviderAPIError(message, error_code=code, operation=e.operation_name) from e
    except BotoCoreError as e:
        raise ProviderError(str(e)) from e
