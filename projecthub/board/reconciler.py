"""
Reconcile a user's saved project order with the current project set.

The saved order (a list of project ids) and the authoritative set drift
apart as projects are created and deleted elsewhere. ``reconcile`` keeps
every saved id that still has a project, in saved order, then appends the
projects the user has never ordered, in the order the store returned them.

``OrderReconciler`` wraps that with the per-session lifecycle: load once,
bootstrap an empty preference, fall back on fetch failure, reload after
``invalidate()``.
"""

from __future__ import annotations

import logging

from projecthub.board.records import field, project_ids
from projecthub.core.exceptions import SessionExpiredError

logger = logging.getLogger(__name__)


def reconcile(persisted_order, projects) -> tuple:
    """Merge ``persisted_order`` (ids) with ``projects`` into a working order.

    Unknown ids are dropped without error; a repeated id keeps its first
    position. Every project appears exactly once in the result.
    """
    by_id = {field(p, "id"): p for p in projects}

    ordered = []
    placed = set()
    for pid in persisted_order or ():
        if pid in by_id and pid not in placed:
            ordered.append(by_id[pid])
            placed.add(pid)

    for project in projects:
        pid = field(project, "id")
        if pid not in placed:
            ordered.append(project)
            placed.add(pid)

    return tuple(ordered)


class OrderReconciler:
    """Loads the working order for one user session.

    Args:
        store: A ProjectStore (see projecthub.board.store).
    """

    def __init__(self, store):
        self.store = store
        self.reconciled = False
        self.bootstrapped = False

    def needs_load(self, user_id, projects) -> bool:
        return bool(user_id) and len(projects) > 0 and not self.reconciled

    def invalidate(self) -> None:
        """Force the next ``load`` to fetch the saved order again."""
        self.reconciled = False

    async def load(self, user_id, projects) -> tuple:
        """Return the working order for ``projects``.

        - saved order exists → ``reconcile(saved, projects)``
        - no saved order     → authoritative order, and the same order is
                               saved as the user's new preference
        - fetch fails        → authoritative order, no retry

        The reconciler is marked complete in every case except session
        expiry, which propagates to the caller.
        """
        projects = tuple(projects)
        try:
            saved = await self.store.get_user_order_preference(user_id)
        except SessionExpiredError:
            raise
        except Exception as exc:
            logger.error(
                "Error loading project order preference: %s", exc,
                extra={"user_id": user_id},
            )
            self.reconciled = True
            return projects

        if saved:
            order = reconcile(saved, projects)
        else:
            order = projects
            await self._bootstrap(user_id, order)

        self.reconciled = True
        return order

    async def _bootstrap(self, user_id, order) -> None:
        try:
            await self.store.initialize_order_preference(user_id, project_ids(order))
            self.bootstrapped = True
            logger.info(
                "Initialized project order preference",
                extra={"user_id": user_id, "project_count": len(order)},
            )
        except SessionExpiredError:
            raise
        except Exception as exc:
            # Next session bootstraps again; the order shown now is unaffected
            logger.error(
                "Error initializing project order preference: %s", exc,
                extra={"user_id": user_id},
            )
