"""Modal screens for the stack view TUI."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Input, Label


class NamePromptScreen(ModalScreen):
    """Ask for a branch name. Dismisses with the stripped name or None."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    NamePromptScreen {
        align: center middle;
    }
    #prompt-container {
        width: 60;
        height: auto;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }
    #prompt-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #prompt-container Input {
        border: none;
        height: 1;
        padding: 0 1;
        background: #333333;
    }
    #prompt-container Input:focus {
        background: #444444;
    }
    """

    def __init__(self, title: str, value: str = "", placeholder: str = "branch name"):
        super().__init__()
        self._title = title
        self._value = value
        self._placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="prompt-container"):
            yield Label(self._title, id="prompt-title")
            yield Input(value=self._value, placeholder=self._placeholder, id="prompt-input")
            yield Label("[dim]Enter to confirm · Esc to cancel[/]")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        name = event.value.strip()
        if name:
            self.dismiss(name)

    def action_cancel(self) -> None:
        self.dismiss(None)


class HelpScreen(ModalScreen):
    """Modal help screen listing the keybindings."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close"),
        Binding("q", "dismiss", "Close"),
        Binding("question_mark", "dismiss", "Close", show=False),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-container {
        width: 56;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }
    #help-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    .help-section {
        margin-top: 1;
        text-style: bold;
        color: $primary;
    }
    .help-row {
        height: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-container"):
            yield Label("Keyboard Shortcuts", id="help-title")
            yield Label("Navigation", classes="help-section")
            yield Label("  [bold]↑↓[/] or [bold]jk[/]  Move between branches", classes="help-row")
            yield Label("  [bold]Tab[/]  Move into commits", classes="help-row")
            yield Label("  [bold]Enter[/]/[bold]Space[/]  Expand or collapse commits", classes="help-row")
            yield Label("Branch", classes="help-section")
            yield Label("  [bold].[/]  Actions menu (also right-click)", classes="help-row")
            yield Label("  [bold]o[/]  Open pull request", classes="help-row")
            yield Label("  [bold]m[/]  Pick up branch to move it", classes="help-row")
            yield Label("  [bold]y[/]/[bold]n[/]  Confirm or cancel a pending move", classes="help-row")
            yield Label("Commit", classes="help-section")
            yield Label("  [bold]Enter[/]  Show diff", classes="help-row")
            yield Label("  [bold]o[/]  Show commit", classes="help-row")
            yield Label("  [bold]y[/]  Copy SHA", classes="help-row")
            yield Label("  [bold].[/]  Actions menu", classes="help-row")
            yield Label("Other", classes="help-section")
            yield Label("  [bold]c[/]  Create branch", classes="help-row")
            yield Label("  [bold]S[/]  Sync repository", classes="help-row")
            yield Label("  [bold]r[/]  Refresh", classes="help-row")
            yield Label("  [bold]?[/]  Show this help", classes="help-row")
            yield Label("  [bold]q[/]  Quit", classes="help-row")

    def action_dismiss(self) -> None:
        self.app.pop_screen()
