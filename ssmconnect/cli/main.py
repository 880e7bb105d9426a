"""CLI entry point for ssmconnect."""

from __future__ import annotations

import logging
import os
import sys

import fire

from ssmconnect.constants import (
    EXIT_CANCELLED,
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
)
from ssmconnect.core.exceptions import (
    BridgeError,
    ConnectorError,
    SelectionCancelledError,
)
from ssmconnect.logging import StreamFormatter, StreamRoutingFilter
from ssmconnect.providers import ProviderAPIError, ProviderConnectionError, ProviderCredentialsError
from ssmconnect.providers.aws.utils import get_aws_credentials_error_message
from ssmconnect.utils import log_and_print_error

logger = logging.getLogger(__name__)


def get_ssmconnect_class() -> type:
    """Get SSMConnect class on-demand to avoid circular imports.

    Returns
    -------
    type
        SSMConnect class
    """
    from ssmconnect.__main__ import SSMConnect

    return SSMConnect


def configure_logging() -> None:
    """Route INFO and below to stdout and WARNING and above to stderr.

    The level defaults to INFO and can be changed with SSMCONNECT_LOG_LEVEL.
    """
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(StreamFormatter("%(message)s"))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(StreamFormatter("%(message)s"))
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    level_name = os.environ.get("SSMCONNECT_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )

    for boto_module in ["botocore", "boto3", "urllib3"]:
        logging.getLogger(boto_module).setLevel(logging.WARNING)


def handle_credentials_error(debug_mode: bool) -> None:
    """Handle provider credentials error.

    Parameters
    ----------
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(get_aws_credentials_error_message(), file=sys.stderr)
    sys.exit(EXIT_ERROR)


def handle_value_error(error: ValueError, debug_mode: bool) -> None:
    """Handle configuration errors.

    Parameters
    ----------
    error : ValueError
        The value error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ValueError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Configuration error: {error}", file=sys.stderr)
    sys.exit(EXIT_CONFIG_ERROR)


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> None:
    """Handle provider API error with context-specific messages.

    Parameters
    ----------
    error : ProviderAPIError
        The API error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    error_code = error.error_code

    if error_code in ["UnauthorizedOperation", "AccessDenied", "AccessDeniedException"]:
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print("ssmconnect needs:", file=sys.stderr)
        print(
            "  - ec2:DescribeInstances, ec2:DescribeTags",
            file=sys.stderr,
        )
        print(
            "  - ssm:DescribeInstanceInformation, ssm:StartSession",
            file=sys.stderr,
        )
        print(
            "  - rds:DescribeDBInstances, rds-db:connect (for tokens)",
            file=sys.stderr,
        )
    elif error_code in ["ExpiredToken", "RequestExpired", "ExpiredTokenException"]:
        print("AWS credentials have expired\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  aws sso login           # If using AWS SSO", file=sys.stderr)
        print("  aws configure           # Re-configure credentials", file=sys.stderr)
    else:
        print(f"AWS API error: {error}", file=sys.stderr)

    sys.exit(EXIT_ERROR)


def handle_connector_error(error: ConnectorError, debug_mode: bool) -> None:
    """Print a pipeline error as one line and exit.

    Parameters
    ----------
    error : ConnectorError
        The pipeline error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ConnectorError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    if isinstance(error, SelectionCancelledError):
        logger.debug("Selection cancelled by operator")
        print("Selection cancelled.", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)

    if isinstance(error, BridgeError) and error.exit_code is not None:
        logger.debug("Bridge exited with status %s", error.exit_code)

    log_and_print_error("%s", error)
    sys.exit(EXIT_ERROR)


def main() -> None:
    """Entry point for Fire CLI with graceful error handling.

    Fire maps the public methods of SSMConnect (ec2, rds, list, doctor,
    version) to sub-commands and their keyword arguments to flags.
    """
    configure_logging()

    debug_mode = os.environ.get("SSMCONNECT_DEBUG") == "1"

    try:
        fire.Fire(get_ssmconnect_class()())
    except ProviderCredentialsError:
        handle_credentials_error(debug_mode)
    except ConnectorError as e:
        handle_connector_error(e, debug_mode)
    except ValueError as e:
        handle_value_error(e, debug_mode)
    except ProviderAPIError as e:
        handle_api_error(e, debug_mode)
    except ProviderConnectionError as e:
        if debug_mode:
            raise
        print(f"Could not reach AWS: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    except RuntimeError as e:
        if debug_mode:
            raise
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)
