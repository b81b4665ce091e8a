"""Branch cards and their paginated commit lists."""

from rich.markup import escape
from rich.text import Text
from textual import events
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Static

from gsv_core.stack import BranchViewModel, CommitViewModel
from gsv_core.tui import messages
from gsv_core.tui.context_menu import ContextMenuScreen, branch_menu_items, commit_menu_items
from gsv_core.tui.reconcile import Animator, KeyedList, ListConfig

COMMIT_CHUNK = 10

CHANGE_STATUS_STYLES = {
    "open": "bold green",
    "merged": "bold magenta",
    "closed": "dim red",
}


def changed_fields(old: BranchViewModel | None, new: BranchViewModel) -> set[str]:
    """Names of the card sub-fields whose rendering differs.

    ``current`` only counts when the branch became current; losing the
    marker is not highlighted.
    """
    if old is None:
        return set()
    changed = set()
    if new.current and not old.current:
        changed.add("current")
    if old.restack != new.restack:
        changed.add("restack")
    old_id = old.change.id if old.change else None
    new_id = new.change.id if new.change else None
    if old_id != new_id:
        changed.add("change")
    old_status = old.change.status if old.change else None
    new_status = new.change.status if new.change else None
    if old_status != new_status:
        changed.add("status")
    if old.push != new.push:
        changed.add("push")
    return changed


def more_label(remaining: int, chunk: int = COMMIT_CHUNK) -> str:
    if remaining > chunk:
        return f"Show more ({remaining})"
    return f"Show remaining {remaining}"


def push_tag(branch: BranchViewModel) -> str:
    push = branch.push
    if push is None:
        return ""
    parts = []
    if push.ahead:
        parts.append(f"↑{push.ahead}")
    if push.behind:
        parts.append(f"↓{push.behind}")
    if push.needs_push and not parts:
        parts.append("needs push")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Commit rows
# ---------------------------------------------------------------------------

class ShaLabel(Static):
    """Short SHA; clicking it shows the commit."""

    def __init__(self, sha: str, short_sha: str, **kwargs):
        super().__init__(short_sha, **kwargs)
        self.sha = sha

    def on_click(self, event: events.Click) -> None:
        if event.button == 1:
            event.stop()
            self.post_message(messages.OpenCommit(self.sha))


class CommitRow(Horizontal):
    """One commit: subject and short SHA."""

    can_focus = True

    BINDINGS = [
        Binding("enter", "open_diff", "Diff", show=False),
        Binding("o", "open_commit", "Show", show=False),
        Binding("y", "copy_sha", "Copy SHA", show=False),
        Binding("full_stop", "menu", "Actions", show=False),
    ]

    def __init__(self, commit: CommitViewModel, branch_name: str, **kwargs):
        super().__init__(classes="commit-row", **kwargs)
        self.commit = commit
        self.branch_name = branch_name
        self.animator = Animator(self)
        self._subject = Static(escape(commit.subject), classes="commit-subject")
        self._sha = ShaLabel(commit.sha, commit.short_sha, classes="commit-sha")

    def compose(self):
        yield self._subject
        yield self._sha

    def update_model(self, commit: CommitViewModel, old: CommitViewModel | None = None) -> None:
        old = old or self.commit
        self.commit = commit
        if commit.subject != old.subject:
            self._subject.update(escape(commit.subject))
            self.animator.flash(self._subject)
        if commit.short_sha != old.short_sha:
            self._sha.sha = commit.sha
            self._sha.update(commit.short_sha)
            self.animator.flash(self._sha)

    def on_click(self, event: events.Click) -> None:
        event.stop()
        if event.button == 3:
            self.action_menu()
        else:
            self.action_open_diff()

    def action_open_diff(self) -> None:
        self.post_message(messages.OpenCommitDiff(self.commit.sha))

    def action_open_commit(self) -> None:
        self.post_message(messages.OpenCommit(self.commit.sha))

    def action_copy_sha(self) -> None:
        self.post_message(messages.CommitCopySha(self.commit.sha))

    def action_menu(self) -> None:
        self.app.push_screen(
            ContextMenuScreen(f"{self.commit.short_sha} {self.commit.subject}", commit_menu_items()),
            self._on_menu_choice,
        )

    def _on_menu_choice(self, action: str | None) -> None:
        sha = self.commit.sha
        if action == "copy-sha":
            self.post_message(messages.CommitCopySha(sha))
        elif action == "fixup":
            self.post_message(messages.CommitFixup(sha))
        elif action == "split":
            self.post_message(messages.CommitSplit(sha, self.branch_name))


class ShowMore(Static):
    """Pagination affordance under a commit list."""

    can_focus = True

    BINDINGS = [Binding("enter", "press", "Show more", show=False)]

    class Pressed(Message):
        """Fired when the user asks for another chunk of commits."""

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.action_press()

    def action_press(self) -> None:
        self.post_message(self.Pressed())


class CommitList(Vertical):
    """Keyed, paginated list of CommitRows for one branch."""

    def __init__(self, branch_name: str, commits=None, chunk: int = COMMIT_CHUNK, **kwargs):
        super().__init__(classes="branch-commits", **kwargs)
        self.branch_name = branch_name
        self.chunk = chunk
        self.commits: tuple[CommitViewModel, ...] = tuple(commits or ())
        self.shown_count = min(len(self.commits), chunk)
        self._rows = Vertical(classes="commit-rows")
        self._more = ShowMore("", classes="show-more")
        self._list: KeyedList[CommitViewModel] = KeyedList(
            self._rows,
            ListConfig(
                get_key=lambda c: c.sha,
                render=lambda c: CommitRow(c, self.branch_name),
                update=lambda row, c, old: row.update_model(c, old),
            ),
        )

    def compose(self):
        yield self._rows
        yield self._more

    def on_mount(self) -> None:
        self._sync()

    def set_commits(self, commits) -> None:
        self.commits = tuple(commits or ())
        # Keep an expanded prefix, but never below one chunk
        self.shown_count = min(len(self.commits), max(self.shown_count, self.chunk))
        if self._rows.is_attached:
            self._sync()

    def show_more(self) -> None:
        self.shown_count = min(len(self.commits), self.shown_count + self.chunk)
        self._sync()

    def visible_commits(self) -> tuple[CommitViewModel, ...]:
        return self.commits[: self.shown_count]

    def _sync(self) -> None:
        self._list.sync(self.visible_commits())
        remaining = len(self.commits) - self.shown_count
        self._more.display = remaining > 0
        if remaining > 0:
            self._more.update(more_label(remaining, self.chunk))

    def on_show_more_pressed(self, message: ShowMore.Pressed) -> None:
        message.stop()
        self.show_more()


# ---------------------------------------------------------------------------
# Branch cards
# ---------------------------------------------------------------------------

class ChangeLink(Static):
    """Change id (e.g. ``#42``); clicking opens the change URL."""

    def __init__(self, **kwargs):
        super().__init__("", **kwargs)
        self.url: str | None = None

    def on_click(self, event: events.Click) -> None:
        event.stop()
        if self.url:
            self.post_message(messages.OpenChange(self.url))


class ReorderButton(Static):
    """Confirm or cancel button; posts its intent for the card's branch."""

    def __init__(self, label: str, intent: type[Message], branch_name: str, **kwargs):
        super().__init__(label, **kwargs)
        self._intent = intent
        self.branch_name = branch_name

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.post_message(self._intent(self.branch_name))


class ReorderBar(Horizontal):
    """Inline confirm/cancel bar shown on the card being moved."""

    def __init__(self, branch_name: str, **kwargs):
        super().__init__(classes="reorder-bar", **kwargs)
        self.branch_name = branch_name

    def compose(self):
        yield ReorderButton("[bold green]✓ Confirm[/]", messages.ConfirmReorder,
                            self.branch_name, classes="reorder-confirm")
        yield ReorderButton("[bold red]✗ Cancel[/]", messages.CancelReorder,
                            self.branch_name, classes="reorder-cancel")


class BranchCard(Vertical):
    """One branch of the focused stack."""

    can_focus = True

    BINDINGS = [
        Binding("space", "toggle", "Expand", show=False),
        Binding("full_stop", "menu", "Actions", show=False),
        Binding("o", "open_change", "Open PR", show=False),
        Binding("y", "confirm_reorder", "Confirm move", show=False),
        Binding("n", "cancel_reorder", "Cancel move", show=False),
    ]

    class DragStart(Message):
        """Mouse pressed on a card."""
        def __init__(self, branch_name: str) -> None:
            self.branch_name = branch_name
            super().__init__()

    class DragEnd(Message):
        """Mouse released over a card."""
        def __init__(self, branch_name: str) -> None:
            self.branch_name = branch_name
            super().__init__()

    def __init__(self, branch: BranchViewModel, chunk: int = COMMIT_CHUNK, **kwargs):
        super().__init__(classes="branch-card", **kwargs)
        self.branch = branch
        self.expanded = branch.current
        self.pending = False
        self.animator = Animator(self)
        self._toggle = Static("", classes="branch-toggle")
        self._current_icon = Static("", classes="current-branch-icon")
        self._name_label = Static(escape(branch.name), classes="branch-name")
        self._restack_tag = Static("Restack", classes="tag tag-warning")
        self._push_tag = Static("", classes="tag tag-push")
        self._change_link = ChangeLink(classes="branch-pr-link")
        self._meta = Static("", classes="branch-meta")
        self._commits = CommitList(branch.name, branch.commits, chunk=chunk)
        self._reorder_bar = ReorderBar(branch.name)
        self._field_widgets = {
            "current": self._current_icon,
            "restack": self._restack_tag,
            "change": self._change_link,
            "status": self._meta,
            "push": self._push_tag,
        }
        self._apply_branch()
        self._reorder_bar.display = False

    def compose(self):
        with Horizontal(classes="branch-header"):
            yield self._toggle
            yield self._current_icon
            yield self._name_label
            yield self._restack_tag
            yield self._push_tag
            yield self._change_link
        yield self._meta
        yield self._commits
        yield self._reorder_bar

    # --- Rendering ---

    def _has_commits(self) -> bool:
        return bool(self.branch.commits)

    def _apply_branch(self) -> None:
        branch = self.branch
        self.set_class(branch.current, "-current")
        self._current_icon.update("●" if branch.current else " ")
        self._restack_tag.display = branch.restack
        tag = push_tag(branch)
        self._push_tag.update(tag)
        self._push_tag.display = bool(tag)

        change = branch.change
        self._change_link.url = change.url if change else None
        self._change_link.update(escape(change.id) if change else "")
        self._change_link.display = change is not None
        self._change_link.set_class(change is not None and not change.url, "-disabled")

        status = change.status if change else None
        if status:
            self._meta.update(Text(status, style=CHANGE_STATUS_STYLES.get(status, "")))
        self._meta.display = bool(status)
        self._apply_expanded()

    def _apply_expanded(self) -> None:
        has_commits = self._has_commits()
        if has_commits:
            self._toggle.update("▾" if self.expanded else "▸")
        else:
            self._toggle.update(" ")
        self._commits.display = has_commits and self.expanded

    def update_model(self, branch: BranchViewModel, old: BranchViewModel | None = None) -> None:
        """Patch the card in place, flashing only the sub-fields that changed."""
        old = old or self.branch
        self.branch = branch
        self._apply_branch()
        for field in changed_fields(old, branch):
            self.animator.flash(self._field_widgets[field])
        if branch.commits != old.commits:
            self._commits.set_commits(branch.commits)

    def set_pending(self, pending: bool) -> None:
        self.pending = pending
        self.set_class(pending, "-pending")
        self._reorder_bar.display = pending

    def toggle(self) -> None:
        if not self._has_commits():
            return
        self.expanded = not self.expanded
        self._apply_expanded()

    # --- Gestures ---

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button == 1:
            self.post_message(self.DragStart(self.branch.name))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if event.button == 1:
            self.post_message(self.DragEnd(self.branch.name))

    def on_click(self, event: events.Click) -> None:
        event.stop()
        if event.button == 3:
            self.action_menu()
        else:
            self.toggle()

    def action_toggle(self) -> None:
        self.toggle()

    def action_open_change(self) -> None:
        change = self.branch.change
        if change and change.url:
            self.post_message(messages.OpenChange(change.url))

    def action_confirm_reorder(self) -> None:
        if self.pending:
            self.post_message(messages.ConfirmReorder(self.branch.name))

    def action_cancel_reorder(self) -> None:
        if self.pending:
            self.post_message(messages.CancelReorder(self.branch.name))

    def action_menu(self) -> None:
        self.app.push_screen(
            ContextMenuScreen(self.branch.name, branch_menu_items(self.branch)),
            self._on_menu_choice,
        )

    def _on_menu_choice(self, action: str | None) -> None:
        if action is None:
            return
        if action == "rename":
            self.post_message(messages.BranchRename(self.branch.name))
        else:
            self.post_message(messages.BranchAction(action, self.branch.name))
