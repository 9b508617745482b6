"""
Drag-to-reorder: apply_move list semantics and optimistic persistence.
"""

import asyncio

import pytest

from conftest import FakeStore, make_project
from projecthub.board.records import project_ids
from projecthub.board.reorder import ReorderCoordinator, ReorderPersistFailed, apply_move
from projecthub.core.exceptions import SessionExpiredError, StoreError

A, B, C, D = (make_project(pid) for pid in "abcd")


# ═════════════════════════════════════════════════════════════════════════════
# apply_move
# ═════════════════════════════════════════════════════════════════════════════


def test_move_last_to_first():
    assert apply_move([A, B, C], "c", "a") == (C, A, B)


def test_move_first_to_last():
    assert apply_move([A, B, C], "a", "c") == (B, C, A)


def test_move_is_not_a_swap():
    assert apply_move([A, B, C, D], "a", "c") == (B, C, A, D)


def test_missing_id_is_noop():
    assert apply_move([A, B, C], "z", "a") == (A, B, C)
    assert apply_move([A, B, C], "a", "z") == (A, B, C)


def test_same_id_is_noop():
    assert apply_move([A, B, C], "b", "b") == (A, B, C)


def test_input_is_not_mutated():
    order = [A, B, C]
    apply_move(order, "c", "a")
    assert order == [A, B, C]


def test_persist_failed_message():
    notice = ReorderPersistFailed(user_id="u1", order=(A,), error="timeout")
    assert notice.message == "Failed to save project order: timeout"


# ═════════════════════════════════════════════════════════════════════════════
# ReorderCoordinator
# ═════════════════════════════════════════════════════════════════════════════


class TestReorderCoordinator:
    def test_applies_before_persisting(self):
        store = FakeStore()
        seen = []

        def apply(order):
            # Nothing persisted yet when the new order is applied
            seen.append((project_ids(order), len(store.calls_to("persist_order"))))

        coordinator = ReorderCoordinator(store)
        result = asyncio.run(coordinator.move("u1", (A, B, C), "c", "a", apply))

        assert result == (C, A, B)
        assert seen == [(["c", "a", "b"], 0)]
        assert store.preferences["u1"] == ["c", "a", "b"]

    def test_noop_move_does_not_persist(self):
        store = FakeStore()
        applied = []
        coordinator = ReorderCoordinator(store)
        result = asyncio.run(coordinator.move("u1", (A, B), "z", "a", applied.append))
        assert result == (A, B)
        assert applied == []
        assert store.calls == []

    def test_persist_failure_keeps_order_and_notifies_once(self):
        store = FakeStore()
        store.fail["persist_order"] = StoreError("persist_order", RuntimeError("boom"))
        notices = []
        applied = []
        coordinator = ReorderCoordinator(store, notify=notices.append)

        result = asyncio.run(coordinator.move("u1", (A, B, C), "c", "a", applied.append))

        assert result == (C, A, B)
        assert applied == [(C, A, B)]
        assert len(notices) == 1
        assert notices[0].order == (C, A, B)
        assert notices[0].message.startswith("Failed to save project order:")
        assert coordinator.reordering is False

    def test_no_user_skips_persist(self):
        store = FakeStore()
        applied = []
        coordinator = ReorderCoordinator(store)
        asyncio.run(coordinator.move(None, (A, B), "b", "a", applied.append))
        assert applied == [(B, A)]
        assert store.calls_to("persist_order") == []

    def test_session_expiry_propagates(self):
        store = FakeStore()
        store.fail["persist_order"] = SessionExpiredError()
        notices = []
        coordinator = ReorderCoordinator(store, notify=notices.append)
        with pytest.raises(SessionExpiredError):
            asyncio.run(coordinator.move("u1", (A, B), "b", "a", lambda order: None))
        assert notices == []
        assert coordinator.in_flight == 0

    def test_concurrent_moves_send_full_orders_last_write_wins(self):
        store = FakeStore()
        coordinator = ReorderCoordinator(store)
        state = {"order": (A, B, C)}

        def apply(order):
            state["order"] = order

        async def scenario():
            gate = asyncio.Event()
            store.gates["persist_order"] = gate
            first = asyncio.ensure_future(
                coordinator.move("u1", state["order"], "c", "a", apply)
            )
            await asyncio.sleep(0)
            assert coordinator.reordering is True
            second = asyncio.ensure_future(
                coordinator.move("u1", state["order"], "b", "c", apply)
            )
            await asyncio.sleep(0)
            assert coordinator.in_flight == 2
            gate.set()
            await asyncio.gather(first, second)

        asyncio.run(scenario())

        sent = [call[2] for call in store.calls_to("persist_order")]
        assert sent == [["c", "a", "b"], ["b", "c", "a"]]
        assert project_ids(state["order"]) == ["b", "c", "a"]
        assert coordinator.reordering is False
