"""Scrollable panel holding one BranchCard per branch of the focused stack."""

from rich.markup import escape
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Static

from gsv_core.paths import configure_logger
from gsv_core.stack import BranchViewModel, DisplayState
from gsv_core.tui import messages
from gsv_core.tui.branch_card import COMMIT_CHUNK, BranchCard
from gsv_core.tui.reconcile import KeyedList, ListConfig

_log = configure_logger("gsv.tui")

EMPTY_TEXT = "No branches in the current stack."


class StackPanel(VerticalScroll):
    """Applies DisplayStates to a keyed list of branch cards.

    Cards are shown top of stack first. Drag and drop works with the
    mouse (press on one card, release on another) or the keyboard:
    ``m`` picks up the focused card, ``up``/``down`` choose the drop
    position, ``enter`` drops and ``escape`` aborts.
    """

    BINDINGS = [
        Binding("up,k", "cursor_up", "Up", show=False),
        Binding("down,j", "cursor_down", "Down", show=False),
        Binding("m", "start_drag", "Move", show=True),
        Binding("enter", "drop_or_toggle", "Drop/Expand", show=False),
        Binding("escape", "cancel_drag", "Abort move", show=False),
    ]

    DEFAULT_CSS = """
    StackPanel {
        scrollbar-size-vertical: 1;
        padding: 0 1;
    }
    StackPanel .stack-cards {
        height: auto;
    }
    StackPanel .empty-state {
        color: $text-muted;
        padding: 1 2;
    }
    """

    def __init__(self, chunk: int = COMMIT_CHUNK, **kwargs):
        super().__init__(**kwargs)
        self.chunk = chunk
        self._state: DisplayState | None = None
        self._empty = Static(EMPTY_TEXT, classes="empty-state")
        self._cards = Vertical(classes="stack-cards")
        self._list: KeyedList[BranchViewModel] = KeyedList(
            self._cards,
            ListConfig(
                get_key=lambda b: b.name,
                render=lambda b: BranchCard(b, chunk=self.chunk),
                update=lambda card, b, old: card.update_model(b, old),
            ),
        )
        self._drag_source: str | None = None
        self._drag_target = 0
        self._mouse_source: str | None = None

    def compose(self):
        yield self._empty
        yield self._cards

    def on_mount(self) -> None:
        if self._state is not None:
            self._render_state(self._state)
        self.post_message(messages.Ready())

    # --- State ---

    @property
    def state(self) -> DisplayState | None:
        return self._state

    def apply_state(self, state: DisplayState) -> None:
        """Reconcile the cards with state; equal states are skipped."""
        if state == self._state:
            return
        self._state = state
        if self._cards.is_attached:
            self._render_state(state)

    def _render_state(self, state: DisplayState) -> None:
        display = list(reversed(state.branches))
        if self._drag_source is not None:
            self._end_drag()
        self._list.sync(display)

        pending = state.pending_reorder.branch_name if state.pending_reorder else None
        for card in self.cards():
            card.set_pending(card.branch.name == pending)

        if display:
            self._empty.display = False
        else:
            self._empty.update(escape(state.error or EMPTY_TEXT))
            self._empty.display = True
        _log.debug("stack panel: %d cards, pending=%s", len(display), pending)

    def display_names(self) -> list[str]:
        return self._list.keys()

    def cards(self) -> list[BranchCard]:
        return [self._list.element_for(name) for name in self.display_names()]

    def card_for(self, name: str) -> BranchCard | None:
        return self._list.element_for(name)

    def _focused_index(self) -> int | None:
        focused = self.screen.focused if self.is_attached else None
        while focused is not None and not isinstance(focused, BranchCard):
            focused = focused.parent
        if focused is None:
            return None
        names = self.display_names()
        name = focused.branch.name
        return names.index(name) if name in names else None

    # --- Keyboard drag ---

    def _mark_target(self) -> None:
        for index, card in enumerate(self.cards()):
            card.set_class(index == self._drag_target, "-drop-target")

    def _end_drag(self) -> None:
        for card in self.cards():
            card.remove_class("-dragging")
            card.remove_class("-drop-target")
        self._drag_source = None

    def action_start_drag(self) -> None:
        index = self._focused_index()
        if index is None:
            return
        name = self.display_names()[index]
        self._drag_source = name
        self._drag_target = index
        self.card_for(name).add_class("-dragging")
        self._mark_target()
        _log.debug("drag start: %s at %d", name, index)

    def _move(self, delta: int) -> None:
        names = self.display_names()
        if not names:
            return
        if self._drag_source is not None:
            self._drag_target = max(0, min(self._drag_target + delta, len(names) - 1))
            self._mark_target()
            self.card_for(names[self._drag_target]).scroll_visible()
            return
        index = self._focused_index()
        index = 0 if index is None else max(0, min(index + delta, len(names) - 1))
        self.card_for(names[index]).focus()

    def action_cursor_up(self) -> None:
        self._move(-1)

    def action_cursor_down(self) -> None:
        self._move(1)

    def action_cancel_drag(self) -> None:
        if self._drag_source is not None:
            _log.debug("drag aborted: %s", self._drag_source)
            self._end_drag()

    def action_drop_or_toggle(self) -> None:
        source = self._drag_source
        if source is None:
            index = self._focused_index()
            if index is not None:
                self.cards()[index].toggle()
            return
        names = self.display_names()
        old_index = names.index(source) if source in names else -1
        new_index = self._drag_target
        self._end_drag()
        if old_index < 0 or old_index == new_index:
            return
        _log.info("drop: %s %d->%d", source, old_index, new_index)
        self.post_message(messages.BranchReorder(old_index, new_index, source))

    # --- Mouse drag ---

    def on_branch_card_drag_start(self, message: BranchCard.DragStart) -> None:
        message.stop()
        self._mouse_source = message.branch_name

    def on_branch_card_drag_end(self, message: BranchCard.DragEnd) -> None:
        message.stop()
        source, self._mouse_source = self._mouse_source, None
        if source is None or source == message.branch_name:
            return
        _log.info("drop: %s onto %s", source, message.branch_name)
        self.post_message(messages.BranchDrop(source, message.branch_name))
