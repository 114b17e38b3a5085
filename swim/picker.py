"""Terminal picker: draws the selector state and turns keys into selector events."""
from typing import ClassVar

from rich import box
from rich.console import Group
from rich.table import Table
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.events import Key
from textual.widgets import Footer, Static

from swim.selector import (
    Backspace, Cancel, Char, Confirm, Down, SelectorState, Up, update,
)


def render_state(state: SelectorState) -> Group:
    """Build the view for ``state``: the filter line above the matching containers."""
    prompt = Text.assemble(("Filter: ", "bold"), state.query or ("type to filter", "dim"))

    table = Table(title="Select a container", box=box.SIMPLE, expand=True)
    table.add_column("Name", no_wrap=True, overflow="ellipsis", ratio=3)
    table.add_column("ID", no_wrap=True, width=12)
    table.add_column("Ports", overflow="fold", ratio=4)

    highlighted = state.highlighted
    for container in state.visible:
        table.add_row(
            container.display_name,
            container.short_id,
            ", ".join(str(port) for port in container.published_ports) or "-",
            style="reverse" if container is highlighted else None,
        )
    if highlighted is None:
        table.caption = "No matching containers"
    return Group(prompt, table)


class ContainerPicker(App):
    """Interactive container picker. Exits with the terminal selector state."""

    BINDINGS: ClassVar = [
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("ctrl+c", "cancel", "Cancel", show=False, priority=True),
        Binding("enter", "confirm", "Select", priority=True),
        Binding("up", "move('up')", "Up", show=False, priority=True),
        Binding("down", "move('down')", "Down", show=False, priority=True),
    ]

    def __init__(self, state: SelectorState) -> None:
        super().__init__()
        self.selection = state

    def compose(self) -> ComposeResult:
        self.body = Static(render_state(self.selection), id="body")
        yield self.body
        yield Footer()

    def feed(self, event) -> None:
        self.selection = update(self.selection, event)
        if self.selection.done:
            self.exit(self.selection)
        else:
            self.body.update(render_state(self.selection))

    def action_cancel(self) -> None:
        self.feed(Cancel())

    def action_confirm(self) -> None:
        self.feed(Confirm())

    def action_move(self, direction: str) -> None:
        self.feed(Up() if direction == "up" else Down())

    def on_key(self, event: Key) -> None:
        if event.key == "backspace":
            self.feed(Backspace())
        elif event.is_printable and event.character:
            self.feed(Char(event.character))


def run_picker(state: SelectorState) -> SelectorState:
    """Run the picker until the operator confirms or cancels."""
    result = ContainerPicker(state).run()
    if result is None:
        # The app was quit through one of textual's own bindings.
        return update(state, Cancel())
    return result
