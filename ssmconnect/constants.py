"""Global constants for ssmconnect.

This module contains application-wide constants shared by the discovery,
session and credential components.
"""

from enum import Enum

BRIDGE_EXECUTABLE = "session-manager-plugin"
"""Name of the external program that runs the interactive SSM session.

Looked up on PATH before any session is requested.
"""

SESSION_VERB = "StartSession"
"""Literal verb passed as the third argument to the bridge executable."""

NAME_TAG_KEY = "Name"
"""Tag key used as the human-readable label of an instance."""

MANAGED_PING_STATUS = "Online"
"""SSM ping status of instances that can accept a session right now."""

EC2_RESOURCE_TYPE = "EC2Instance"
"""SSM resource type of nodes that are EC2 instances (hybrid nodes report ManagedInstance)."""

TAG_FILTER_BATCH_SIZE = 200
"""Maximum number of resource ids per describe_tags filter.

EC2 rejects filters with more than 200 values, so larger id sets are split
into several requests.
"""

TOKEN_LIFETIME_MINUTES = 15
"""Validity window of an RDS IAM authentication token.

Enforced by AWS, not by ssmconnect. Used only in the usage guidance.
"""

UNSUPPORTED_ENGINE_MARKER = "oracle"
"""Engine substring of databases without IAM authentication support."""

DEFAULT_NAME_COLUMN_WIDTH = 24
"""Width in characters of the name column in `list` output."""

DEFAULT_CONFIG_PATH = "~/.ssmconnect.yaml"
"""Configuration file used when SSMCONNECT_CONFIG is not set."""

EXIT_SUCCESS = 0
"""Exit code indicating successful program completion."""

EXIT_ERROR = 1
"""Exit code indicating a general application error."""

EXIT_CONFIG_ERROR = 2
"""Exit code indicating a configuration error.

Used when the application terminates due to an invalid configuration file,
an unknown profile or an unresolvable region.
"""

EXIT_CANCELLED = 130
"""Exit code used when the operator cancels selection or presses Ctrl+C."""


class InstanceState(str, Enum):
    """EC2 instance state values."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


TERMINAL_INSTANCE_STATES = frozenset(
    (InstanceState.SHUTTING_DOWN.value, InstanceState.TERMINATED.value)
)
"""States from which an instance can never become connectable again."""

ACTIVE_INSTANCE_STATES = [
    InstanceState.PENDING.value,
    InstanceState.RUNNING.value,
    InstanceState.STOPPING.value,
    InstanceState.STOPPED.value,
]
"""EC2 instance states requested from the API (server-side filter)."""

CONNECTABLE_STATE = InstanceState.RUNNING.value
"""The only instance state in which an SSM session can be started."""

DB_AVAILABLE_STATUS = "available"
"""RDS status of a database that accepts connections."""


class PlatformFamily(str, Enum):
    """Coarse operating system classification of an instance."""

    LINUX = "Linux"
    WINDOWS = "Windows"
