"""RDS IAM authentication token generation and usage guidance."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ssmconnect.constants import DB_AVAILABLE_STATUS, TOKEN_LIFETIME_MINUTES
from ssmconnect.core.exceptions import CredentialRequestError, PreconditionError
from ssmconnect.core.models import AuthToken, DatabaseResource
from ssmconnect.providers.aws.errors import handle_aws_errors
from ssmconnect.providers.exceptions import ProviderError

logger = logging.getLogger(__name__)

MYSQL_TEMPLATE = """\
MySQL / MariaDB:
  mysql --host={host} --port={port} --user={user} \\
    --password='{token}' \\
    --enable-cleartext-plugin --ssl-mode=REQUIRED"""

POSTGRES_TEMPLATE = """\
PostgreSQL:
  PGPASSWORD='{token}' psql \\
    "host={host} port={port} user={user} dbname=postgres sslmode=require\""""


def prompt_username(
    input_func: Callable[[str], str] = input, prompt: str = "Database username: "
) -> str:
    """Ask for a database username until a non-blank value is entered.

    Parameters
    ----------
    input_func : Callable[[str], str]
        Function reading one line from the operator (default: input)
    prompt : str
        Prompt text

    Returns
    -------
    str
        Whitespace-trimmed username
    """
    while True:
        username = input_func(prompt).strip()
        if username:
            return username
        print("Username cannot be empty.")


class CredentialMinter:
    """Generate short-lived IAM authentication tokens for RDS databases.

    Parameters
    ----------
    rds_client : Any
        boto3 RDS client
    region : str
        Region the token is signed for
    """

    def __init__(self, rds_client: Any, region: str) -> None:
        self.rds_client = rds_client
        self.region = region

    def mint(self, resource: DatabaseResource, username: str) -> AuthToken:
        """Generate a token for connecting to the database as username.

        Parameters
        ----------
        resource : DatabaseResource
            Selected database
        username : str
            Database user enabled for IAM authentication

        Returns
        -------
        AuthToken
            Token valid for 15 minutes from generation

        Raises
        ------
        ValueError
            If username is blank
        PreconditionError
            If the database has no endpoint
        CredentialRequestError
            If token generation fails
        """
        username = username.strip()
        if not username:
            raise ValueError("username must not be empty")

        if not resource.has_endpoint:
            raise PreconditionError(
                "database has no endpoint address; it may still be creating",
                resource_id=resource.identifier,
            )

        if resource.status != DB_AVAILABLE_STATUS:
            logger.warning(
                "Database %s is '%s', not '%s'. The token is generated anyway.",
                resource.identifier,
                resource.status,
                DB_AVAILABLE_STATUS,
            )

        host = resource.endpoint_host
        port = resource.endpoint_port

        logger.debug("Generating auth token for %s@%s:%s", username, host, port)

        try:
            with handle_aws_errors():
                value = self.rds_client.generate_db_auth_token(
                    DBHostname=host,
                    Port=port,
                    DBUsername=username,
                    Region=self.region,
                )
        except ProviderError as e:
            raise CredentialRequestError(
                f"failed to generate auth token: {e}",
                resource_id=resource.identifier,
            ) from e

        if not value:
            raise CredentialRequestError(
                "provider returned an empty auth token",
                resource_id=resource.identifier,
            )

        return AuthToken(
            value=value,
            host=host,
            port=port,
            username=username,
            region=self.region,
        )


def format_usage(token: AuthToken, resource: DatabaseResource) -> str:
    """Render the token together with connection examples for the engine.

    The MySQL and PostgreSQL examples are chosen independently by substring
    match on the engine name, so an engine matching both gets both.

    Parameters
    ----------
    token : AuthToken
        Generated token
    resource : DatabaseResource
        Database the token was generated for

    Returns
    -------
    str
        Multi-line guidance text
    """
    expires = token.expires_at.strftime("%H:%M:%S UTC")
    lines = [
        f"Database:  {resource.identifier} ({resource.engine_kind})",
        f"Endpoint:  {token.host}:{token.port}",
        f"Username:  {token.username}",
        f"Valid for: {TOKEN_LIFETIME_MINUTES} minutes (until about {expires})",
        "",
        "Token:",
        token.value,
    ]

    values = {
        "host": token.host,
        "port": token.port,
        "user": token.username,
        "token": token.value,
    }
    engine = resource.engine_kind.lower()
    examples = []

    if "mysql" in engine or "mariadb" in engine:
        examples.append(MYSQL_TEMPLATE.format(**values))

    if "postgres" in engine:
        examples.append(POSTGRES_TEMPLATE.format(**values))

    if examples:
        lines.extend(["", "Connect with:"])
        for example in examples:
            lines.extend(["", example])

    lines.extend(
        [
            "",
            "IAM authentication requires SSL/TLS. The token is only the "
            "password; it does not grant database privileges.",
        ]
    )
    return "\n".join(lines)
