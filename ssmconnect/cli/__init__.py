"""Command-line entry point and error handlers."""
