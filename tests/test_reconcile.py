"""Tests for gsv_core.tui.reconcile — keyed list reconciliation."""

from unittest.mock import MagicMock

from gsv_core.tui.reconcile import (
    ENTER_CLASS,
    EXIT_CLASS,
    FLASH_CLASS,
    Animator,
    ElementRegistry,
    KeyedList,
    ListConfig,
    reconcile,
)
from tests.conftest import FakeContainer, FakeElement


def make_config(update=True, needs_update=None):
    return ListConfig(
        get_key=lambda item: item[0],
        render=MagicMock(side_effect=lambda item: FakeElement(item[0], item)),
        update=MagicMock() if update else None,
        needs_update=needs_update,
    )


def live_keys(container: FakeContainer, keyed: KeyedList) -> list[str]:
    return [c.key for c in container.children if keyed.registry.is_live(c)]


A, B, C, D = ("A", 1), ("B", 1), ("C", 1), ("D", 1)


# ---------------------------------------------------------------------------
# Ordering and minimality
# ---------------------------------------------------------------------------

class TestOrdering:
    def test_initial_render_mounts_in_order(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B, C])
        assert container.keys() == ["A", "B", "C"]
        assert container.moves() == []
        assert keyed.config.render.call_count == 3

    def test_swap_is_one_move_and_no_rerender(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B, C])
        config.render.reset_mock()

        keyed.sync([A, C, B])

        assert container.keys() == ["A", "C", "B"]
        assert len(container.moves()) <= 1
        config.render.assert_not_called()
        config.update.assert_not_called()

    def test_identical_list_is_no_op(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B, C])
        ops_before = list(container.ops)

        keyed.sync([A, B, C])

        assert container.ops == ops_before
        assert config.render.call_count == 3
        config.update.assert_not_called()

    def test_reverse(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B, C, D])
        keyed.sync([D, C, B, A])
        assert container.keys() == ["D", "C", "B", "A"]
        assert len(container.moves()) == 3

    def test_insert_in_middle_mounts_after_predecessor(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, C])
        keyed.sync([A, B, C])
        assert container.keys() == ["A", "B", "C"]
        assert container.moves() == []

    def test_insert_at_front(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([B, C])
        keyed.sync([A, B, C])
        assert container.keys() == ["A", "B", "C"]

    def test_elements_are_reused_across_moves(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B, C])
        element_b = keyed.element_for("B")
        keyed.sync([B, C, A])
        assert keyed.element_for("B") is element_b
        assert keyed.keys() == ["B", "C", "A"]

    def test_duplicate_keys_first_wins(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([("A", 1), ("A", 2), B])
        assert container.keys() == ["A", "B"]
        assert config.render.call_count == 2
        assert keyed.element_for("A").item == ("A", 1)

    def test_live_children_match_after_every_sync(self):
        sequences = [
            [A, B, C],
            [C, A],
            [B, C, D, A],
            [],
            [D],
            [A, D, ("B", 2), C],
            [("C", 3), ("B", 2)],
        ]
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        for index, items in enumerate(sequences):
            keyed.sync(items)
            assert live_keys(container, keyed) == [k for k, _ in items]
            if index % 2:
                container.fire_timers()
        container.fire_timers()
        assert container.keys() == ["C", "B"]


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------

class TestUpdates:
    def test_changed_item_patched_in_place(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B])
        element = keyed.element_for("A")

        keyed.sync([("A", 2), B])

        config.update.assert_called_once_with(element, ("A", 2), ("A", 1))
        assert keyed.element_for("A") is element
        assert config.render.call_count == 2

    def test_changed_item_replaced_without_update_hook(self):
        container = FakeContainer()
        config = make_config(update=False)
        keyed = KeyedList(container, config)
        keyed.sync([A, B])
        old = keyed.element_for("A")

        keyed.sync([("A", 2), B])

        new = keyed.element_for("A")
        assert new is not old
        assert new.item == ("A", 2)
        assert old.remove_calls == 1
        assert container.children == (new, keyed.element_for("B"))

    def test_replacement_flashes(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config(update=False))
        keyed.sync([A, B])
        container.fire_timers()

        keyed.sync([("A", 2), B])

        new = keyed.element_for("A")
        assert new.has_class(FLASH_CLASS)
        assert not keyed.element_for("B").has_class(FLASH_CLASS)
        container.fire_timers()
        assert not new.has_class(FLASH_CLASS)

    def test_needs_update_false_skips_patch(self):
        container = FakeContainer()
        config = make_config(needs_update=lambda previous, item: False)
        keyed = KeyedList(container, config)
        keyed.sync([A])
        keyed.sync([("A", 2)])
        config.update.assert_not_called()
        assert keyed.registry.models["A"] == ("A", 2)

    def test_needs_update_receives_previous_item(self):
        seen = []

        def needs_update(previous, item):
            seen.append((previous, item))
            return False

        container = FakeContainer()
        keyed = KeyedList(container, make_config(needs_update=needs_update))
        keyed.sync([A])
        keyed.sync([("A", 2)])
        keyed.sync([("A", 3)])
        assert seen == [(("A", 1), ("A", 2)), (("A", 2), ("A", 3))]

    def test_moved_and_changed(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B])
        keyed.sync([("B", 2), A])
        assert container.keys() == ["B", "A"]
        config.update.assert_called_once()


# ---------------------------------------------------------------------------
# Exits
# ---------------------------------------------------------------------------

class TestExits:
    def test_removed_key_exits_after_timer(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B])
        element_b = keyed.element_for("B")

        keyed.sync([A])

        assert container.keys() == ["A", "B"]
        assert element_b.has_class(EXIT_CLASS)
        assert keyed.element_for("B") is None
        assert "B" in keyed.registry.exiting

        container.fire_timers()

        assert container.keys() == ["A"]
        assert element_b.remove_calls == 1
        assert keyed.registry.exiting == {}

    def test_reappearing_key_revives_exiting_element(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B])
        element_b = keyed.element_for("B")

        keyed.sync([A])
        keyed.sync([A, B])
        container.fire_timers()

        assert keyed.element_for("B") is element_b
        assert not element_b.has_class(EXIT_CLASS)
        assert element_b.remove_calls == 0
        assert container.keys() == ["A", "B"]
        assert config.render.call_count == 2

    def test_revived_element_moves_to_new_position(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B, C])
        keyed.sync([A, C])
        keyed.sync([B, A, C])
        assert container.keys() == ["B", "A", "C"]
        container.fire_timers()
        assert container.keys() == ["B", "A", "C"]

    def test_revived_element_with_changed_item_is_patched(self):
        container = FakeContainer()
        config = make_config()
        keyed = KeyedList(container, config)
        keyed.sync([A, B])
        keyed.sync([A])
        keyed.sync([A, ("B", 2)])
        config.update.assert_called_once_with(keyed.element_for("B"), ("B", 2), ("B", 1))

    def test_exit_then_revive_then_exit_removes_once(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B])
        element_b = keyed.element_for("B")
        keyed.sync([A])
        keyed.sync([A, B])
        keyed.sync([A])
        container.fire_timers()
        assert element_b.remove_calls == 1
        assert container.keys() == ["A"]

    def test_element_detached_before_timer(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B])
        element_b = keyed.element_for("B")
        keyed.sync([A])
        element_b.remove()
        container.fire_timers()
        assert element_b.remove_calls == 1
        assert "B" not in keyed.registry.exiting

    def test_new_element_placed_ignoring_exiting_siblings(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B])
        keyed.sync([C])
        assert live_keys(container, keyed) == ["C"]
        container.fire_timers()
        assert container.keys() == ["C"]


# ---------------------------------------------------------------------------
# Animator
# ---------------------------------------------------------------------------

class TestAnimator:
    def test_new_elements_animate_in(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A])
        element = keyed.element_for("A")
        assert element.has_class(ENTER_CLASS)
        container.fire_timers()
        assert not element.has_class(ENTER_CLASS)

    def test_flash_restart_keeps_class_until_last_timer(self):
        host = FakeContainer()
        animator = Animator(host)
        element = FakeElement("x")
        animator.flash(element)
        first = host.timers[0]
        animator.flash(element)
        assert first.stopped
        assert element.has_class(FLASH_CLASS)
        host.fire_timers()
        assert not element.has_class(FLASH_CLASS)

    def test_animate_out_cancels_pulses(self):
        host = FakeContainer()
        animator = Animator(host)
        element = FakeElement("x")
        animator.animate_in(element)
        animator.flash(element)
        animator.animate_out(element)
        assert element.classes == {EXIT_CLASS}
        assert all(t.stopped for t in host.timers)


# ---------------------------------------------------------------------------
# reconcile() without KeyedList
# ---------------------------------------------------------------------------

class TestReconcileFunction:
    def test_uses_old_items_when_registry_has_no_model(self):
        container = FakeContainer()
        config = make_config()
        registry = ElementRegistry()
        element = FakeElement("A", A)
        container.mount(element)
        registry.elements["A"] = element

        reconcile(container, [A], [("A", 2)], config, registry)

        config.update.assert_called_once_with(element, ("A", 2), A)
        assert registry.models == {"A": ("A", 2)}

    def test_unregistered_children_left_alone(self):
        container = FakeContainer()
        stray = FakeElement("stray")
        container.mount(stray)
        registry = ElementRegistry()
        reconcile(container, [], [A, B], make_config(), registry)
        assert container.keys() == ["stray", "A", "B"]
        assert stray.remove_calls == 0


# ---------------------------------------------------------------------------
# ElementRegistry liveness
# ---------------------------------------------------------------------------

class TestLiveness:
    def test_live_ids_follow_exit_and_revive(self):
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync([A, B])
        element_b = keyed.element_for("B")
        assert id(element_b) in keyed.registry.live_ids()

        keyed.sync([A])
        assert not keyed.registry.is_live(element_b)
        assert keyed.registry.live_ids() == {id(keyed.element_for("A"))}

        keyed.sync([A, B])
        assert keyed.registry.is_live(element_b)

    def test_equal_but_distinct_element_is_not_live(self):
        registry = ElementRegistry()
        registry.elements["A"] = FakeElement("A", A)
        assert not registry.is_live(FakeElement("A", A))

    def test_large_reorder_keeps_exact_order(self):
        items = [(f"k{i}", 1) for i in range(400)]
        container = FakeContainer()
        keyed = KeyedList(container, make_config())
        keyed.sync(items)
        shuffled = items[1::2] + items[::2]

        keyed.sync(shuffled)

        assert live_keys(container, keyed) == [k for k, _ in shuffled]
