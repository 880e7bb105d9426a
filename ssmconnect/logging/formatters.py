"""Logging formatters for terminal output."""

import logging


class StreamFormatter(logging.Formatter):
    """Logging formatter that prefixes warnings and errors with their severity."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a severity prefix for WARNING and above.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format

        Returns
        -------
        str
            Formatted log message with optional severity prefix
        """
        msg = super().format(record)

        if record.levelno >= logging.ERROR:
            return f"Error: {msg}"
        elif record.levelno >= logging.WARNING:
            return f"Warning: {msg}"
        elif record.levelno <= logging.DEBUG:
            return f"[{record.name}] {msg}"

        return msg
