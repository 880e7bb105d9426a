"""ssmconnect - pick an AWS instance or database and connect to it."""

__version__ = "0.3.0"
