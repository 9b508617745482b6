"""
Drag-to-reorder: list-move semantics plus optimistic persistence.

``apply_move`` is pure. ``ReorderCoordinator.move`` hands the new order to
the caller (``apply``) before it awaits the store, and never rolls the
order back: the session's local order wins even when the store rejects
the write. A failed write is reported through ``notify`` instead.

Nothing serializes concurrent moves. Each persist call carries the full
order, so the store ends up with whichever call finished last.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from projecthub.board.records import field, project_ids
from projecthub.core.exceptions import SessionExpiredError

logger = logging.getLogger(__name__)


def _index_of(order, pid) -> int:
    for index, project in enumerate(order):
        if field(project, "id") == pid:
            return index
    return -1


def apply_move(order, moved_id, target_id) -> tuple:
    """Move ``moved_id`` to the position currently held by ``target_id``.

    Elements in between shift by one (a move, not a swap). Returns ``order``
    unchanged when either id is missing or both are the same.
    """
    order = tuple(order)
    if moved_id == target_id:
        return order
    old_index = _index_of(order, moved_id)
    new_index = _index_of(order, target_id)
    if old_index == -1 or new_index == -1:
        return order

    items = list(order)
    items.insert(new_index, items.pop(old_index))
    return tuple(items)


@dataclass(frozen=True)
class ReorderPersistFailed:
    """User-facing notice that the new order was not saved."""

    user_id: str
    order: tuple
    error: str

    @property
    def message(self) -> str:
        return f"Failed to save project order: {self.error}"


class ReorderCoordinator:
    """Applies moves locally, then persists the full order.

    Args:
        store: A ProjectStore.
        notify: Called with a ReorderPersistFailed when a persist fails.
    """

    def __init__(self, store, notify: Callable[[ReorderPersistFailed], None] | None = None):
        self.store = store
        self.notify = notify or (lambda notice: None)
        self.in_flight = 0

    @property
    def reordering(self) -> bool:
        return self.in_flight > 0

    async def move(self, user_id, order, moved_id, target_id, apply: Callable[[tuple], None]) -> tuple:
        """Apply the move via ``apply`` and persist it. Returns the new order.

        A no-op move returns ``order`` without calling ``apply`` or the store.
        SessionExpiredError propagates; every other persist failure is
        reported through ``notify`` and leaves the applied order in place.
        """
        new_order = apply_move(order, moved_id, target_id)
        if new_order == tuple(order):
            return new_order

        apply(new_order)

        if not user_id:
            logger.warning("No user id available, project order not saved")
            return new_order

        self.in_flight += 1
        try:
            await self.store.persist_order(user_id, project_ids(new_order))
            logger.debug("Project order saved", extra={"user_id": user_id, "project_count": len(new_order)})
        except SessionExpiredError:
            raise
        except Exception as exc:
            logger.error(
                "Error saving project order; keeping local order: %s", exc,
                extra={"user_id": user_id},
            )
            self.notify(ReorderPersistFailed(user_id=user_id, order=new_order, error=str(exc) or type(exc).__name__))
        finally:
            self.in_flight -= 1
        return new_order
