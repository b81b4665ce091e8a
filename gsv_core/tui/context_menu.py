"""Context menus for branch cards and commit rows."""

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Label

from gsv_core import paths
from gsv_core.stack import BranchViewModel

FIXUP_SETTING = "experimental-fixup"


@dataclass(frozen=True)
class MenuItem:
    action: str
    label: str
    icon: str = " "
    enabled: bool = True


def branch_menu_items(branch: BranchViewModel) -> list[MenuItem]:
    """Menu entries for a branch card, with enablement for this branch."""
    submit_label = "Submit" if branch.change else "Submit (create PR)"
    submit_icon = "⇡" if branch.change else "⇪"
    return [
        MenuItem("untrack", "Untrack", "◌"),
        MenuItem("checkout", "Checkout", "⎇"),
        MenuItem("fold", "Fold", "⤓"),
        MenuItem("squash", "Squash", "⇊"),
        MenuItem("edit", "Edit", "✎", enabled=branch.current),
        MenuItem("rename", "Rename", "✐"),
        MenuItem("restack", "Restack", "↻", enabled=branch.restack),
        MenuItem("submit", submit_label, submit_icon),
    ]


def commit_menu_items(fixup: bool | None = None) -> list[MenuItem]:
    """Menu entries for a commit row.

    Fixup is only offered when the ``experimental-fixup`` setting is on.
    """
    if fixup is None:
        fixup = paths.get_global_setting(FIXUP_SETTING)
    items = [MenuItem("copy-sha", "Copy SHA", "⧉")]
    if fixup:
        items.append(MenuItem("fixup", "Fixup", "✎"))
    items.append(MenuItem("split", "Split Branch", "⑂"))
    return items


class ContextMenuScreen(ModalScreen):
    """Modal action picker. Dismisses with the chosen action or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    ContextMenuScreen {
        align: center middle;
    }
    #menu-container {
        width: 40;
        height: auto;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }
    #menu-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    .menu-row {
        height: 1;
    }
    """

    def __init__(self, title: str, items: list[MenuItem]):
        super().__init__()
        self._title = title
        self._items = items
        self._selected = next((i for i, item in enumerate(items) if item.enabled), 0)

    def compose(self) -> ComposeResult:
        with Vertical(id="menu-container"):
            yield Label(self._title, id="menu-title")
            yield Label("", id="menu-options")
            yield Label("[dim]↑↓ navigate  Enter select  Esc cancel[/]", classes="menu-row")

    def on_mount(self) -> None:
        self._refresh_options()

    def _refresh_options(self) -> None:
        lines = []
        for i, item in enumerate(self._items):
            pointer = "▸ " if i == self._selected else "  "
            line = f"{pointer}{item.icon} {item.label}"
            lines.append(line if item.enabled else f"[dim]{line}[/dim]")
        self.query_one("#menu-options", Label).update("\n".join(lines))

    def _step(self, delta: int) -> None:
        index = self._selected
        for _ in range(len(self._items)):
            index += delta
            if not 0 <= index < len(self._items):
                return
            if self._items[index].enabled:
                self._selected = index
                self._refresh_options()
                return

    def on_key(self, event) -> None:
        if event.key in ("up", "k"):
            self._step(-1)
        elif event.key in ("down", "j"):
            self._step(1)
        elif event.key == "enter":
            item = self._items[self._selected] if self._items else None
            if item is not None and item.enabled:
                self.dismiss(item.action)
        else:
            return
        event.prevent_default()
        event.stop()

    def action_cancel(self) -> None:
        self.dismiss(None)
