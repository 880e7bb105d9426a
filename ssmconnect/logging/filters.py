"""Logging filters routing records to stdout or stderr."""

import logging


class StreamRoutingFilter(logging.Filter):
    """Pass records to exactly one of the stdout and stderr handlers.

    Records below WARNING go to stdout, everything else to stderr. A record
    may force a stream with ``extra={"stream": "stdout"}`` or ``"stderr"``.

    Parameters
    ----------
    target : str
        "stdout" or "stderr"
    """

    def __init__(self, target: str) -> None:
        if target not in ("stdout", "stderr"):
            raise ValueError(f"target must be 'stdout' or 'stderr', got {target!r}")
        super().__init__()
        self.target = target

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True when the record belongs to this filter's stream."""
        stream = getattr(record, "stream", None)
        if stream is None:
            stream = "stderr" if record.levelno >= logging.WARNING else "stdout"
        return stream == self.target
