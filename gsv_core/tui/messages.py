"""Intents posted by the stack view widgets.

Widgets never call gs themselves: a gesture posts one of these messages,
which bubbles up to the app. Textual dispatches each class to its own
``on_<snake_name>`` handler; Ready and Refresh are namespaced
(``on_stack_ready``, ``on_stack_refresh``) so they do not collide with
Textual's own events.
"""

from textual.message import Message

from gsv_core.tui import field_message


class Ready(Message, namespace="stack"):
    """The stack panel is mounted and can receive state."""


class Refresh(Message, namespace="stack"):
    """Reload the branch snapshot."""


OpenChange = field_message("OpenChange", "url", "Open a change (pull request) in the browser.")
OpenCommit = field_message("OpenCommit", "sha", "Show a commit.")
OpenCommitDiff = field_message("OpenCommitDiff", "sha", "Show a commit's diff.")
ConfirmReorder = field_message("ConfirmReorder", "branch_name", "Apply the pending reorder.")
CancelReorder = field_message("CancelReorder", "branch_name", "Discard the pending reorder.")
CommitCopySha = field_message("CommitCopySha", "sha", "Copy a commit SHA to the clipboard.")
CommitFixup = field_message("CommitFixup", "sha", "Fix up a commit with the staged changes.")


class BranchDrop(Message):
    """A branch card was dropped onto another card."""
    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__()


class BranchReorder(Message):
    """A keyboard drag finished; indices are top-first display positions."""
    def __init__(self, old_index: int, new_index: int, branch_name: str) -> None:
        self.old_index = old_index
        self.new_index = new_index
        self.branch_name = branch_name
        super().__init__()


class BranchAction(Message):
    """Run a single-branch gs action (checkout, restack, submit, ...)."""
    def __init__(self, action: str, branch_name: str) -> None:
        self.action = action
        self.branch_name = branch_name
        super().__init__()


class BranchRename(Message):
    """Rename a branch. new_name is None until the user has been prompted."""
    def __init__(self, branch_name: str, new_name: str | None = None) -> None:
        self.branch_name = branch_name
        self.new_name = new_name
        super().__init__()


class CommitSplit(Message):
    """Split a branch at a commit; the app prompts for the new branch name."""
    def __init__(self, sha: str, branch_name: str) -> None:
        self.sha = sha
        self.branch_name = branch_name
        super().__init__()
