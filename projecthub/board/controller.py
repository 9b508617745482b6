"""
ProjectBoard: per-session state behind the project list.

Owns the working order, the derived stats, the search/pagination state and
the loading flags, and wires the board components to a ProjectStore and an
auth provider:

    store.list_projects + list_child_records ─► set_collections
         ├─► StatsBatchLoader   ─► stakeholder_counts ─┐
         └─► OrderReconciler    ─► order               ├─► rows()
                                    ▲                  │
    move() ─► ReorderCoordinator ───┘   AggregationIndex┘

Every async result is applied only while the (generation, user_id) pair it
was issued under is still current; ``open``, sign-out and ``close`` bump
the generation so late results from an earlier session are dropped.
SessionExpiredError from the store signs the user out instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from projecthub.board.aggregation import AggregationIndex, ProjectDerivedStats
from projecthub.board.filter_pager import DEBOUNCE_SECONDS, INITIAL_WINDOW, FilterPager
from projecthub.board.reconciler import OrderReconciler, reconcile
from projecthub.board.records import field, project_ids
from projecthub.board.reorder import ReorderCoordinator, ReorderPersistFailed
from projecthub.board.stats_loader import StatsBatchLoader
from projecthub.core.exceptions import SessionExpiredError

logger = logging.getLogger(__name__)

CHILD_KINDS = (
    "notes",
    "problem_overviews",
    "progress_statuses",
    "user_stories",
    "user_journeys",
    "designs",
)

_NO_STATS = ProjectDerivedStats()

# most recent persist failures kept for display
MAX_NOTIFICATIONS = 5


class ProjectBoard:
    """Project list controller for one signed-in user at a time.

    Args:
        store: A ProjectStore.
        auth: Auth provider (optional). Needed for ``open_current`` and for
            signing out on session expiry.
        page_size: Initial visible window and load-more increment.
        debounce_seconds: Search debounce delay.
        slow_build_ms: Threshold for the slow stats build warning.
    """

    def __init__(
        self,
        store,
        auth=None,
        *,
        page_size: int = INITIAL_WINDOW,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        slow_build_ms: float = 100.0,
    ):
        self.store = store
        self.auth = auth
        self.user_id: str | None = None
        self.generation = 0

        self.projects: tuple = ()
        self.collections: dict = {kind: () for kind in CHILD_KINDS}
        self.stakeholder_counts: dict = {}
        self.order: tuple = ()
        self.notifications: list[str] = []

        self.loading_stats = False
        self.loading_preferences = False

        self._index = AggregationIndex(slow_build_ms=slow_build_ms)
        self._loader = StatsBatchLoader(store)
        self._reconciler = OrderReconciler(store)
        self._reorder = ReorderCoordinator(store, notify=self._on_persist_failed)
        self._pager = FilterPager(page_size, page_size, debounce_seconds)
        self._tasks: set[asyncio.Task] = set()

        self._unsubscribe = None
        if auth is not None:
            self._unsubscribe = auth.on_session_change(self._on_session_change)

    # ── state ────────────────────────────────────────────────────────────

    @property
    def reordering(self) -> bool:
        return self._reorder.reordering

    @property
    def query(self) -> str:
        return self._pager.query

    @property
    def effective_query(self) -> str:
        return self._pager.effective_query

    @property
    def visible_count(self) -> int:
        return self._pager.visible_count

    @property
    def stats(self):
        """``{project_id: ProjectDerivedStats}``, rebuilt when any input changes."""
        return self._index.stats(
            self.projects,
            stakeholder_counts=self.stakeholder_counts,
            **self.collections,
        )

    @property
    def filtered_count(self) -> int:
        return len(self._pager.filtered(self.order))

    @property
    def total_count(self) -> int:
        return len(self.order)

    @property
    def has_more(self) -> bool:
        return self._pager.has_more(self.order)

    def rows(self) -> list[tuple]:
        """Visible ``(project, ProjectDerivedStats)`` pairs in working order."""
        stats = self.stats
        return [
            (project, stats.get(field(project, "id"), _NO_STATS))
            for project in self._pager.visible(self.order)
        ]

    def _token(self) -> tuple:
        return (self.generation, self.user_id)

    def _is_current(self, token: tuple) -> bool:
        return token == self._token()

    def _reset(self, user_id: str | None) -> None:
        self.user_id = user_id
        self.generation += 1
        self.projects = ()
        self.collections = {kind: () for kind in CHILD_KINDS}
        self.stakeholder_counts = {}
        self.order = ()
        self.notifications = []
        self.loading_stats = False
        self.loading_preferences = False
        self._reconciler = OrderReconciler(self.store)
        self._index.invalidate()
        self._pager.sync_total(0)

    # ── session ──────────────────────────────────────────────────────────

    async def open(self, user_id: str | None) -> None:
        """Bind the board to ``user_id`` and load everything."""
        self._reset(user_id)
        logger.debug("Board opened", extra={"user_id": user_id, "generation": self.generation})
        await self.refresh()

    async def open_current(self):
        """Open the board for the auth provider's current session.

        Returns the session, or None when nobody is signed in.
        """
        try:
            session = await self.auth.get_current_session()
        except SessionExpiredError:
            await self._expire()
            return None
        await self.open(session.user.id if session else None)
        return session

    async def _expire(self) -> None:
        logger.warning("Session expired, signing out", extra={"user_id": self.user_id})
        self._reset(None)
        if self.auth is None:
            return
        try:
            await self.auth.sign_out()
        except Exception:
            logger.exception("Error signing out after session expiry")

    def _on_session_change(self, event: str, session) -> None:
        if event == "SIGNED_OUT":
            if self.user_id is not None:
                self._reset(None)
        elif event == "SIGNED_IN" and session is not None and session.user.id != self.user_id:
            self._reset(session.user.id)
            self._spawn(self.refresh())

    def _spawn(self, coro) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def close(self) -> None:
        """Drop pending timers and tasks; late results are discarded."""
        self._pager.close()
        self.generation += 1
        for task in list(self._tasks):
            task.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ── loading ──────────────────────────────────────────────────────────

    def set_collections(self, projects, **collections) -> None:
        """Replace the authoritative project set and child collections.

        Kinds not passed keep their current value. The working order keeps
        its current sequence for known projects and appends new ones.
        """
        unknown = set(collections) - set(CHILD_KINDS)
        if unknown:
            raise TypeError(f"Unknown collections: {', '.join(sorted(unknown))}")

        self.projects = tuple(projects)
        merged = dict(self.collections)
        for kind, records in collections.items():
            merged[kind] = tuple(records or ())
        self.collections = merged
        self._replace_order(reconcile(project_ids(self.order), self.projects))

    def _replace_order(self, order: tuple) -> None:
        self.order = order
        self._pager.sync_total(len(order))

    async def refresh(self) -> None:
        """Fetch projects and child records, then stakeholder counts and order."""
        token = self._token()
        try:
            projects, children = await asyncio.gather(
                self.store.list_projects(),
                self.store.list_child_records(),
            )
        except SessionExpiredError:
            if self._is_current(token):
                await self._expire()
            return
        except Exception as exc:
            logger.error("Error loading projects: %s", exc, extra={"user_id": self.user_id})
            return
        if not self._is_current(token):
            logger.debug("Discarding stale project load", extra={"generation": token[0]})
            return

        self.set_collections(
            projects, **{kind: children.get(kind, ()) for kind in CHILD_KINDS}
        )
        # moves are refused from here until the saved order is applied
        if self._reconciler.needs_load(self.user_id, self.projects):
            self.loading_preferences = True
        await asyncio.gather(self._load_stats(token), self._load_order(token))

    async def _load_stats(self, token: tuple) -> None:
        ids = project_ids(self.projects)
        if not ids:
            self.stakeholder_counts = {}
            return
        self.loading_stats = True
        try:
            counts = await self._loader.load(ids)
        finally:
            if self._is_current(token):
                self.loading_stats = False
        if self._is_current(token):
            self.stakeholder_counts = counts

    async def _load_order(self, token: tuple) -> None:
        reconciler = self._reconciler
        if not reconciler.needs_load(self.user_id, self.projects):
            return
        self.loading_preferences = True
        try:
            order = await reconciler.load(self.user_id, self.projects)
        except SessionExpiredError:
            if self._is_current(token):
                await self._expire()
            return
        finally:
            if self._is_current(token):
                self.loading_preferences = False
        if not self._is_current(token):
            logger.debug("Discarding stale order load", extra={"generation": token[0]})
            return
        # The project set may have changed while the preference was loading
        self._replace_order(reconcile(project_ids(order), self.projects))

    # ── user actions ─────────────────────────────────────────────────────

    async def move(self, moved_id, target_id) -> tuple:
        """Move a project onto another's position; returns the working order.

        Ignored while the saved order is loading: the working order is not
        yet the user's, and persisting it would overwrite their preference.
        """
        if self.loading_preferences:
            logger.debug("Move ignored while saved order loads", extra={"user_id": self.user_id})
            return self.order
        token = self._token()

        def apply(new_order):
            if self._is_current(token):
                self._replace_order(new_order)

        try:
            await self._reorder.move(self.user_id, self.order, moved_id, target_id, apply)
        except SessionExpiredError:
            if self._is_current(token):
                await self._expire()
        return self.order

    def _on_persist_failed(self, notice: ReorderPersistFailed) -> None:
        if notice.user_id == self.user_id:
            self.notifications = (self.notifications + [notice.message])[-MAX_NOTIFICATIONS:]

    def dismiss_notifications(self) -> list[str]:
        """Return the pending notices and clear them once shown."""
        shown, self.notifications = self.notifications, []
        return shown

    def set_search(self, text: str) -> None:
        self._pager.set_query(text)

    def apply_search_now(self) -> None:
        self._pager.apply_query_now()

    def load_more(self) -> int:
        return self._pager.load_more(self.filtered_count)

    async def _mutate(self, operation: str, call):
        token = self._token()
        try:
            result = await call
        except SessionExpiredError:
            if self._is_current(token):
                await self._expire()
            return None
        logger.info("Project %s", operation, extra={"user_id": self.user_id})
        if self._is_current(token):
            self._reconciler.invalidate()
            await self.refresh()
        return result

    async def create_project(self, name: str, overview: str | None = None):
        return await self._mutate(
            "created", self.store.create_project(name, overview, created_by=self.user_id)
        )

    async def update_project(self, project_id: str, **fields):
        return await self._mutate("updated", self.store.update_project(project_id, fields))

    async def delete_project(self, project_id: str) -> bool:
        """Remove the project from the user's order, then delete it."""
        if self.user_id:
            try:
                await self.store.remove_order_entry(self.user_id, project_id)
            except SessionExpiredError:
                await self._expire()
                return False
            except Exception as exc:
                logger.error(
                    "Error removing project from order preference: %s", exc,
                    extra={"user_id": self.user_id, "project_id": project_id},
                )
        token = self._token()
        await self._mutate("deleted", self.store.delete_project(project_id))
        return self._is_current(token)

    # ── output ───────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        rows = []
        for project, stats in self.rows():
            data = dict(project) if isinstance(project, Mapping) else project.to_dict()
            data["stats"] = stats.to_dict()
            rows.append(data)
        return {
            "projects": rows,
            "total": self.total_count,
            "filtered": self.filtered_count,
            "visible_count": self.visible_count,
            "has_more": self.has_more,
            "query": self.query,
            "reordering": self.reordering,
            "loading_stats": self.loading_stats,
            "loading_preferences": self.loading_preferences,
            "notifications": list(self.notifications),
        }
