"""Keyed list reconciliation for Textual containers.

``reconcile`` makes a container's keyed children match a new list of
items with as few DOM operations as possible:

1. Children whose key disappeared get the ``-exit`` class and are removed
   by a timer once the exit animation has played.
2. ``new_items`` is walked in order with a cursor. A surviving element is
   re-rendered or patched only when ``needs_update`` reports a change,
   then moved only if it is not already right after the cursor. A new key
   is rendered, mounted after the cursor and animated in.

Per-key bookkeeping (element, last item, pending exit timer) lives in an
``ElementRegistry`` owned by the call site, never on the widgets.

The container and its children are used through a small slice of the
Textual API: ``children``, ``mount(before=/after=)``,
``move_child(before=/after=)``, ``set_timer``, ``add_class``,
``remove_class``, ``remove`` and ``parent``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from gsv_core.paths import configure_logger

_log = configure_logger("gsv.tui.reconcile")

T = TypeVar("T")

ENTER_DURATION = 0.2
ANIMATION_DURATION = 0.2
FLASH_DURATION = 0.3

ENTER_CLASS = "-enter"
EXIT_CLASS = "-exit"
FLASH_CLASS = "-flash"


@dataclass
class ListConfig(Generic[T]):
    """How one keyed list renders and updates its items.

    render(item) -> new element.
    update(element, item, previous) patches an element in place; without
        it a changed item is re-rendered and the element replaced.
    needs_update(previous, item) -> bool; defaults to ``previous != item``.
    """
    get_key: Callable[[T], str]
    render: Callable[[T], Any]
    update: Optional[Callable[[Any, T, T], None]] = None
    needs_update: Optional[Callable[[T, T], bool]] = None

    def changed(self, previous: Optional[T], item: T) -> bool:
        if previous is None:
            return True
        if self.needs_update is not None:
            return self.needs_update(previous, item)
        return previous != item


class Animator:
    """Class-toggling animations, each undone by a cancellable timer."""

    def __init__(self, host):
        self._host = host
        self._timers: dict[tuple[int, str], Any] = {}

    def _pulse(self, element, css_class: str, duration: float) -> None:
        key = (id(element), css_class)
        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.stop()
        element.add_class(css_class)

        def _done() -> None:
            if self._timers.get(key) is timer:
                del self._timers[key]
                element.remove_class(css_class)

        timer = self._host.set_timer(duration, _done)
        self._timers[key] = timer

    def animate_in(self, element) -> None:
        self._pulse(element, ENTER_CLASS, ENTER_DURATION)

    def animate_out(self, element) -> None:
        """Start the exit animation; removal is scheduled by the registry."""
        self.cancel(element)
        element.add_class(EXIT_CLASS)

    def flash(self, element) -> None:
        """Highlight one changed sub-widget."""
        self._pulse(element, FLASH_CLASS, FLASH_DURATION)

    def cancel(self, element) -> None:
        for key in [k for k in self._timers if k[0] == id(element)]:
            self._timers.pop(key).stop()
            element.remove_class(key[1])


class ElementRegistry(Generic[T]):
    """Parallel keyed map: key -> live element, last item, pending exit."""

    def __init__(self):
        self.elements: dict[str, Any] = {}
        self.models: dict[str, T] = {}
        # key -> (element, item, timer) for elements playing their exit
        self.exiting: dict[str, tuple[Any, T, Any]] = {}

    def live_ids(self) -> set[int]:
        return {id(el) for el in self.elements.values()}

    def is_live(self, element) -> bool:
        return id(element) in self.live_ids()

    def begin_exit(self, key: str, container, animator: Animator) -> None:
        element = self.elements.pop(key)
        item = self.models.pop(key, None)
        animator.animate_out(element)

        def _finish() -> None:
            entry = self.exiting.get(key)
            # Revived or superseded by a newer exit: nothing to do
            if entry is None or entry[0] is not element:
                return
            del self.exiting[key]
            if element.parent is container:
                element.remove()

        timer = container.set_timer(ANIMATION_DURATION, _finish)
        self.exiting[key] = (element, item, timer)

    def revive(self, key: str):
        """Cancel a pending exit and make the element live again."""
        entry = self.exiting.pop(key, None)
        if entry is None:
            return None
        element, item, timer = entry
        timer.stop()
        element.remove_class(EXIT_CLASS)
        self.elements[key] = element
        if item is not None:
            self.models[key] = item
        return element


def _place(container, live: list, element, index: int, *, new: bool) -> None:
    """Put element at position index among the live keyed children."""
    if element in live:
        live.remove(element)
    if index > 0:
        anchor = {"after": live[index - 1]}
    elif live:
        anchor = {"before": live[0]}
    else:
        anchor = {}
    if new:
        container.mount(element, **anchor)
    elif anchor:
        container.move_child(element, **anchor)
    live.insert(index, element)


def reconcile(container, old_items: Sequence[T], new_items: Sequence[T],
              config: ListConfig[T], registry: ElementRegistry[T],
              animator: Optional[Animator] = None) -> None:
    """Mutate container so its live keyed children follow new_items.

    Afterwards the registered, non-exiting children of container are
    exactly the keys of new_items, in order. Exiting elements are still
    attached until their timers fire.
    """
    animator = animator or Animator(container)
    get_key = config.get_key
    previous_by_key = {get_key(item): item for item in old_items}

    new_keys: dict[str, T] = {}
    for item in new_items:
        key = get_key(item)
        if key in new_keys:
            _log.warning("reconcile: duplicate key %r ignored", key)
            continue
        new_keys[key] = item

    for key in [k for k in registry.elements if k not in new_keys]:
        registry.begin_exit(key, container, animator)

    live_ids = registry.live_ids()
    live = [child for child in container.children if id(child) in live_ids]

    for index, (key, item) in enumerate(new_keys.items()):
        element = registry.elements.get(key)
        if element is None:
            element = registry.revive(key)
            if element is not None and element not in live:
                live.append(element)

        if element is None:
            element = config.render(item)
            registry.elements[key] = element
            _place(container, live, element, index, new=True)
            animator.animate_in(element)
        else:
            previous = registry.models.get(key, previous_by_key.get(key))
            if config.changed(previous, item):
                if config.update is not None:
                    config.update(element, item, previous)
                else:
                    replacement = config.render(item)
                    container.mount(replacement, before=element)
                    live[live.index(element)] = replacement
                    animator.cancel(element)
                    element.remove()
                    registry.elements[key] = replacement
                    element = replacement
                    animator.flash(replacement)
            if index >= len(live) or live[index] is not element:
                _place(container, live, element, index, new=False)
        registry.models[key] = item


class KeyedList(Generic[T]):
    """One reconciled list: a container plus its config and registry."""

    def __init__(self, container, config: ListConfig[T], animator: Optional[Animator] = None):
        self.container = container
        self.config = config
        self.registry: ElementRegistry[T] = ElementRegistry()
        self.animator = animator or Animator(container)
        self.items: tuple[T, ...] = ()

    def sync(self, new_items: Sequence[T]) -> None:
        reconcile(self.container, self.items, new_items, self.config, self.registry, self.animator)
        self.items = tuple(new_items)

    def element_for(self, key: str):
        return self.registry.elements.get(key)

    def keys(self) -> list[str]:
        """Live keys in display order."""
        return [self.config.get_key(item) for item in self.items]
