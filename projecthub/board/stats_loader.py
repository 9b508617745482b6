"""
Stakeholder counts for the project board.

Two tiers: one batched store call for every id; if that fails, one call per
project, all in flight at once, joined with partial-success tolerance.
``load`` never raises; the worst case is every count at 0.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class StatsBatchLoader:
    def __init__(self, store):
        self.store = store

    async def load(self, project_ids) -> dict:
        """Return ``{project_id: count}`` covering every id in ``project_ids``."""
        ids = list(dict.fromkeys(project_ids))
        if not ids:
            return {}
        try:
            return await self._load_batch(ids)
        except Exception as exc:
            logger.error("Error loading stakeholder counts in batch: %s", exc)
        try:
            return await self._load_each(ids)
        except Exception as exc:
            logger.error("Per-project stakeholder loading also failed: %s", exc)
            return {pid: 0 for pid in ids}

    async def _load_batch(self, ids: list) -> dict:
        batch = await self.store.get_stakeholder_counts_batch(ids)
        return {pid: int(batch.get(pid, 0) or 0) for pid in ids}

    async def _load_each(self, ids: list) -> dict:
        results = await asyncio.gather(
            *(self.store.get_stakeholder_count(pid) for pid in ids),
            return_exceptions=True,
        )
        counts = {}
        for pid, result in zip(ids, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Stakeholder count failed for project %s: %s", pid, result,
                    extra={"project_id": pid},
                )
                counts[pid] = 0
            else:
                counts[pid] = int(result or 0)
        return counts
