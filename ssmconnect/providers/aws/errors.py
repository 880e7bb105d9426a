"""Translation of botocore exceptions into provider exceptions."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    CredentialRetrievalError,
    NoCredentialsError,
    NoRegionError,
    ParamValidationError,
    PartialCredentialsError,
    SSOError,
    TokenRetrievalError,
)

from ssmconnect.providers.exceptions import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)

CREDENTIAL_ERRORS = (
    NoCredentialsError,
    PartialCredentialsError,
    TokenRetrievalError,
    CredentialRetrievalError,
    SSOError,
)


@contextlib.contextmanager
def handle_aws_errors() -> Iterator[None]:
    """Convert botocore exceptions raised in the block to provider exceptions.

    Raises
    ------
    ProviderCredentialsError
        If credentials are missing, partial, or an SSO session has expired
    ProviderAPIError
        If an AWS API call returns an error response or has invalid parameters
    ProviderConnectionError
        For any other botocore failure (unreachable endpoint, timeouts)
    ValueError
        If no region is configured
    """
    try:
        yield
    except CREDENTIAL_ERRORS as e:
        raise ProviderCredentialsError(str(e)) from e
    except NoRegionError as e:
        raise ValueError(
            "No AWS region configured. Pass --region or set it in your AWS profile."
        ) from e
    except ClientError as e:
        error = e.response.get("Error", {})
        raise ProviderAPIError(
            message=error.get("Message") or str(e),
            error_code=error.get("Code"),
        ) from e
    except ParamValidationError as e:
        raise ProviderAPIError(message=str(e), error_code="ParamValidation") from e
    except BotoCoreError as e:
        raise ProviderConnectionError(str(e)) from e
