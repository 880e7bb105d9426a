"""AWS-specific utility functions for ssmconnect."""

from __future__ import annotations


def get_aws_credentials_error_message(profile: str | None = None) -> str:
    """Get standard AWS credentials error message.

    Parameters
    ----------
    profile : str | None
        Profile that was requested, included in the SSO hint when given

    Returns
    -------
    str
        Formatted AWS credentials error message
    """
    sso_login = f"aws sso login --profile {profile}" if profile else "aws sso login"

    return (
        "AWS credentials not found\n\n"
        "Configure your credentials:\n"
        "  aws configure\n\n"
        "Or, if you use AWS SSO:\n"
        f"  {sso_login}\n\n"
        "Or set environment variables:\n"
        "  export AWS_ACCESS_KEY_ID=...\n"
        "  export AWS_SECRET_ACCESS_KEY=..."
    )
