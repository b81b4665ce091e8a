"""Reusable TUI widgets for the stack view."""

from rich.markup import escape
from textual.widgets import Static


class StatusBar(Static):
    """Top status bar showing the repository, stack size and load state."""

    def update_status(self, repo: str, load_state: str, branch_count: int = 0,
                      current: str = "", pending: str = "") -> None:
        state_icons = {
            "ready": "[green]up to date[/green]",
            "loading": "[yellow]loading...[/yellow]",
            "running": "[yellow]running gs...[/yellow]",
            "error": "[red]error[/red]",
        }
        state_display = state_icons.get(load_state, f"[red]{escape(load_state)}[/red]")
        count_info = f"[bold]{branch_count}[/bold] branches" if branch_count else ""
        current_display = f"    on [cyan]{escape(current)}[/cyan]" if current else ""
        pending_display = f"    [yellow]moving {escape(pending)}[/yellow] [dim](y confirm, n cancel)[/dim]" if pending else ""
        self.update(f" Repo: [bold]{escape(repo)}[/bold]    {count_info}{current_display}{pending_display}    {state_display}")


class ErrorLine(Static):
    """Last snapshot load error; hidden while there is none."""

    def show_error(self, error: str | None) -> None:
        self.display = bool(error)
        self.update(f" [red]{escape(error)}[/red]" if error else "")


class LogLine(Static):
    """Single-line log output at the bottom of the screen."""
    pass
