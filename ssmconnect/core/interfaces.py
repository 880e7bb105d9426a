"""Protocols shared between pipeline components."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Selectable(Protocol):
    """Anything the interactive selector can display and return."""

    @property
    def resource_id(self) -> str:
        """Stable provider identifier."""
        ...

    @property
    def label(self) -> str:
        """One-line human-readable description."""
        ...


class ProcessRunner(Protocol):
    """Callable with the signature of `subprocess.run` used to spawn the bridge."""

    def __call__(self, args: list[str], **kwargs: Any) -> Any:
        ...
