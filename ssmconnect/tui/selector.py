"""Interactive single-choice selector built on Textual."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Label, OptionList
from textual.widgets.option_list import Option

from ssmconnect.core.exceptions import SelectionCancelledError
from ssmconnect.core.interfaces import Selectable

T = TypeVar("T", bound=Selectable)


class ResourceSelectorApp(App[int]):
    """Inline list of labels that exits with the index of the chosen one.

    Parameters
    ----------
    labels : Sequence[str]
        One line per option, in display order
    title : str
        Heading shown above the list

    Returns
    -------
    int | None
        Index into labels, or None when cancelled
    """

    CSS = """
    ResourceSelectorApp {
        height: auto;
    }

    #selector-title {
        text-style: bold;
        padding: 0 1;
    }

    OptionList {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+c", "cancel", "Cancel", priority=True),
    ]

    def __init__(self, labels: Sequence[str], title: str) -> None:
        super().__init__()
        self.labels = list(labels)
        self.title_text = title

    def compose(self) -> ComposeResult:
        """Compose the title and option list."""
        yield Label(self.title_text, id="selector-title")
        yield OptionList(
            *[Option(label, id=str(index)) for index, label in enumerate(self.labels)],
            id="selector-options",
        )

    def on_mount(self) -> None:
        """Focus the option list so arrow keys work immediately."""
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Exit with the index of the selected option.

        Parameters
        ----------
        event : OptionList.OptionSelected
            Selection event
        """
        self.exit(event.option_index)

    def action_cancel(self) -> None:
        """Exit without a selection."""
        self.exit(None)


def select_resource(
    records: Sequence[T],
    title: str,
    app_factory: Callable[[Sequence[str], str], App[int]] = ResourceSelectorApp,
) -> T:
    """Let the operator pick one record and return it.

    Parameters
    ----------
    records : Sequence[T]
        Records to choose from, in display order; never modified
    title : str
        Heading shown above the list
    app_factory : Callable[[Sequence[str], str], App[int]]
        Factory for the selector app (default: ResourceSelectorApp)

    Returns
    -------
    T
        The chosen record

    Raises
    ------
    ValueError
        If records is empty
    SelectionCancelledError
        If the operator cancels
    """
    if not records:
        raise ValueError("select_resource called with no records")

    app = app_factory([record.label for record in records], title)
    index = app.run(inline=True)

    if index is None:
        raise SelectionCancelledError()

    return records[index]
