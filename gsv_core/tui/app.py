"""Textual TUI app for the git-spice stack view."""

import asyncio
import subprocess
import webbrowser
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer

from gsv_core.config import Config, load_config
from gsv_core.git_ops import show_commit_cmd
from gsv_core.gs_ops import GsResult
from gsv_core.paths import configure_logger
from gsv_core.session import StackSession
from gsv_core.stack import DisplayState
from gsv_core.tui import messages
from gsv_core.tui.repo_watch import RepoWatcher
from gsv_core.tui.screens import HelpScreen, NamePromptScreen
from gsv_core.tui.stack_panel import StackPanel
from gsv_core.tui.widgets import ErrorLine, LogLine, StatusBar

_log = configure_logger("gsv.tui")

ACTION_VERBS = {
    "checkout": "Checked out",
    "untrack": "Untracked",
    "fold": "Folded",
    "squash": "Squashed",
    "edit": "Edited",
    "restack": "Restacked",
    "submit": "Submitted",
}


class StackViewApp(App):
    """Interactive view of the git-spice stack around the current branch."""

    TITLE = "gsv: git-spice stack view"

    CSS = """
    Screen {
        layout: vertical;
    }
    StatusBar {
        height: 1;
        background: $surface;
        color: $text;
        padding: 0 1;
    }
    ErrorLine {
        height: auto;
        padding: 0 1;
        display: none;
    }
    #stack-panel {
        height: 1fr;
    }
    LogLine {
        height: 1;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }
    BranchCard {
        height: auto;
        border: round $panel-lighten-2;
        padding: 0 1;
        margin-bottom: 1;
    }
    BranchCard:focus {
        border: round $accent;
    }
    BranchCard.-current {
        border: round $success;
    }
    BranchCard.-pending {
        border: round $warning;
    }
    BranchCard.-dragging {
        opacity: 60%;
    }
    BranchCard.-drop-target {
        border: double $accent;
    }
    BranchCard.-enter, CommitRow.-enter {
        tint: $success 15%;
    }
    BranchCard.-exit, CommitRow.-exit {
        opacity: 30%;
    }
    .-flash {
        background: $warning 30%;
    }
    .branch-header {
        height: 1;
    }
    .branch-header Static {
        width: auto;
        margin-right: 1;
    }
    .branch-name {
        text-style: bold;
    }
    .tag-warning {
        color: $warning;
    }
    .tag-push {
        color: $accent;
    }
    .branch-pr-link {
        color: $primary;
        text-style: underline;
    }
    .branch-pr-link.-disabled {
        color: $text-muted;
        text-style: none;
    }
    .branch-meta {
        height: 1;
        padding-left: 2;
    }
    .branch-commits, .commit-rows {
        height: auto;
    }
    .branch-commits {
        padding-left: 2;
    }
    CommitRow {
        height: 1;
    }
    CommitRow:focus {
        background: $boost;
    }
    .commit-subject {
        width: 1fr;
    }
    .commit-sha {
        width: 10;
        color: $text-muted;
    }
    .show-more {
        height: 1;
        color: $primary;
    }
    .reorder-bar {
        height: 1;
    }
    .reorder-bar Static {
        width: auto;
        margin-right: 2;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("c", "create_branch", "New branch", show=True),
        Binding("S", "sync", "Sync", show=True),
        Binding("question_mark", "show_help", "Help", show=True),
    ]

    def __init__(self, repo: Path | None, config: Config | None = None,
                 session: StackSession | None = None, watch: bool = True):
        super().__init__()
        self._config = config or load_config()
        self._session = session or StackSession(repo)
        self._watch = watch
        self._watcher: RepoWatcher | None = None
        self._lock = asyncio.Lock()
        self._refresh_queued = False

    @property
    def session(self) -> StackSession:
        return self._session

    def compose(self) -> ComposeResult:
        yield StatusBar(id="status-bar")
        yield ErrorLine(id="error-line")
        yield StackPanel(chunk=self._config.commit_chunk, id="stack-panel")
        yield LogLine(id="log-line")
        yield Footer()

    def on_mount(self) -> None:
        _log.info("TUI mounted (repo=%s)", self._session.repo)
        self._update_status("loading")
        repo = self._session.repo
        if self._watch and repo is not None:
            self._watcher = RepoWatcher(repo, self._on_repo_changed,
                                        debounce=self._config.refresh_debounce)
            self._watcher.start(self, interval=self._config.poll_interval)

    def on_unmount(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()

    def _on_repo_changed(self) -> None:
        self.run_worker(self._refresh(), group="refresh")

    # --- Display ---

    def log_message(self, msg: str) -> None:
        """Show a message in the log line."""
        try:
            self.query_one("#log-line", LogLine).update(f" {msg}")
        except Exception:
            pass

    def _update_status(self, load_state: str | None = None, state: DisplayState | None = None) -> None:
        state = state or self._session.display_state()
        if load_state is None:
            load_state = "error" if state.error else "ready"
        current = next((b.name for b in state.branches if b.current), "")
        pending = state.pending_reorder.branch_name if state.pending_reorder else ""
        repo = self._session.repo
        status_bar = self.query_one("#status-bar", StatusBar)
        status_bar.update_status(repo.name if repo else "(none)", load_state,
                                 branch_count=len(state.branches),
                                 current=current, pending=pending)

    def _apply_session_state(self) -> None:
        state = self._session.display_state()
        self.query_one("#stack-panel", StackPanel).apply_state(state)
        self.query_one("#error-line", ErrorLine).show_error(state.error)
        self._update_status(state=state)

    def _report(self, result: GsResult | None, success: str) -> None:
        if result is None:
            return
        if result.ok:
            self.notify(success, timeout=3)
            self.log_message(success)
        else:
            self.notify(result.error, title="git-spice", severity="error", timeout=8)
            self.log_message(f"Error: {result.error}")

    # --- Session operations ---

    async def _run_session(self, description: str, fn, *args):
        """Run a blocking session method in a thread, one at a time."""
        async with self._lock:
            self._update_status("running")
            _log.info("%s", description)
            loop = asyncio.get_running_loop()
            try:
                result = await loop.run_in_executor(None, lambda: fn(*args))
            except Exception as e:
                _log.exception("%s failed", description)
                self.log_message(f"Error: {e}")
                result = None
            self._apply_session_state()
            return result

    async def _refresh(self) -> None:
        # One queued refresh covers any number of triggers behind it
        if self._refresh_queued:
            return
        self._refresh_queued = True
        async with self._lock:
            self._refresh_queued = False
            self._update_status("loading")
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(None, self._session.refresh)
            except Exception as e:
                _log.exception("refresh failed")
                self.log_message(f"Refresh error: {e}")
            self._apply_session_state()

    async def _run_action(self, action: str, branch_name: str) -> None:
        result = await self._run_session(f"{action} {branch_name}",
                                         self._session.run_action, action, branch_name)
        self._report(result, f"{ACTION_VERBS.get(action, action)} {branch_name}")

    async def _run_edit(self, branch_name: str) -> None:
        """gs branch edit is interactive: hand the terminal over while it runs."""
        async with self._lock:
            try:
                with self.suspend():
                    result = self._session.run_action("edit", branch_name)
            except Exception as e:
                _log.exception("edit %s failed", branch_name)
                self.log_message(f"Error: {e}")
                result = None
            self._apply_session_state()
        self._report(result, f"Edited {branch_name}")

    def _show_commit(self, sha: str, patch: bool) -> None:
        repo = self._session.repo
        if repo is None:
            return
        try:
            with self.suspend():
                subprocess.run(show_commit_cmd(sha, patch=patch), cwd=repo)
        except Exception as e:
            _log.exception("git show %s failed", sha)
            self.log_message(f"Error: {e}")

    # --- Message handlers ---

    def on_stack_ready(self, message: messages.Ready) -> None:
        _log.debug("stack panel ready")
        self.run_worker(self._refresh(), group="refresh")

    def on_stack_refresh(self, message: messages.Refresh) -> None:
        self.run_worker(self._refresh(), group="refresh")

    def on_open_change(self, message: messages.OpenChange) -> None:
        _log.info("opening %s", message.url)
        if not webbrowser.open(message.url):
            self.log_message(f"Open in a browser: {message.url}")

    def on_open_commit(self, message: messages.OpenCommit) -> None:
        self._show_commit(message.sha, patch=False)

    def on_open_commit_diff(self, message: messages.OpenCommitDiff) -> None:
        self._show_commit(message.sha, patch=True)

    def on_branch_drop(self, message: messages.BranchDrop) -> None:
        self._session.begin_drop(message.source, message.target)
        self._apply_session_state()
        if self._session.pending_reorder is not None:
            self.log_message(f"Move {message.source}? y to confirm, n to cancel")

    def on_branch_reorder(self, message: messages.BranchReorder) -> None:
        self._session.begin_reorder(message.old_index, message.new_index, message.branch_name)
        self._apply_session_state()
        if self._session.pending_reorder is not None:
            self.log_message(f"Move {message.branch_name}? y to confirm, n to cancel")

    def on_confirm_reorder(self, message: messages.ConfirmReorder) -> None:
        async def _confirm() -> None:
            name = message.branch_name
            result = await self._run_session(f"move {name}", self._session.confirm_reorder, name)
            self._report(result, f"Moved {name}")
        self.run_worker(_confirm())

    def on_cancel_reorder(self, message: messages.CancelReorder) -> None:
        async def _cancel() -> None:
            if await self._run_session("cancel move", self._session.cancel_reorder, message.branch_name):
                self.log_message(f"Move of {message.branch_name} cancelled")
        self.run_worker(_cancel())

    def on_branch_action(self, message: messages.BranchAction) -> None:
        if message.action == "edit":
            self.run_worker(self._run_edit(message.branch_name))
        else:
            self.run_worker(self._run_action(message.action, message.branch_name))

    def on_branch_rename(self, message: messages.BranchRename) -> None:
        name = message.branch_name
        if message.new_name is None:
            def _prompted(new_name: str | None) -> None:
                if new_name:
                    self.post_message(messages.BranchRename(name, new_name))
            self.push_screen(NamePromptScreen(f"Rename {name}", value=name), _prompted)
            return

        async def _rename() -> None:
            result = await self._run_session(f"rename {name}", self._session.rename_branch,
                                             name, message.new_name)
            self._report(result, f"Renamed {name} to {message.new_name}")
        self.run_worker(_rename())

    def on_commit_copy_sha(self, message: messages.CommitCopySha) -> None:
        try:
            import pyperclip
            pyperclip.copy(message.sha)
            self.notify(f"Copied {message.sha[:8]}", timeout=2)
        except ImportError:
            self.log_message("pyperclip not available; install it for clipboard support")
        except Exception as e:
            self.log_message(f"Clipboard error: {e} (install xclip or xsel)")

    def on_commit_fixup(self, message: messages.CommitFixup) -> None:
        async def _fixup() -> None:
            result = await self._run_session(f"fixup {message.sha[:8]}",
                                             self._session.fixup_commit, message.sha)
            self._report(result, f"Fixed up {message.sha[:8]}")
        self.run_worker(_fixup())

    def on_commit_split(self, message: messages.CommitSplit) -> None:
        sha, branch = message.sha, message.branch_name

        def _prompted(new_name: str | None) -> None:
            if not new_name:
                return

            async def _split() -> None:
                result = await self._run_session(f"split {branch}", self._session.split_branch,
                                                 branch, sha, new_name)
                self._report(result, f"Split {new_name} off {branch}")
            self.run_worker(_split())

        self.push_screen(NamePromptScreen(f"Split {branch} at {sha[:8]}: new branch name"), _prompted)

    # --- Key actions ---

    def action_refresh(self) -> None:
        self.run_worker(self._refresh(), group="refresh")
        self.log_message("Refreshed")

    def action_create_branch(self) -> None:
        def _prompted(name: str | None) -> None:
            if not name:
                return

            async def _create() -> None:
                result = await self._run_session(f"create {name}", self._session.create_branch, name)
                self._report(result, f"Created {name}")
            self.run_worker(_create())

        self.push_screen(NamePromptScreen("New branch on top of the current one"), _prompted)

    def action_sync(self) -> None:
        async def _sync() -> None:
            result = await self._run_session("sync repository", self._session.sync)
            self._report(result, "Repository synced")
        self.run_worker(_sync())

    def action_show_help(self) -> None:
        self.push_screen(HelpScreen())
