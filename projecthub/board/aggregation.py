"""
Per-project rollups for the project board.

Child collections arrive flat (every note, every story, ... across all
projects). ``build_project_stats`` groups each collection by ``project_id``
in one pass and then assembles one ``ProjectDerivedStats`` per project, so
the cost is O(projects + child records) instead of filtering every
collection once per project.

``AggregationIndex`` memoizes the last build and rebuilds it whenever any
input collection is a different object than last time. It never diffs:
a new list means a new result.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from types import MappingProxyType

from projecthub.board.records import field

logger = logging.getLogger(__name__)

_EMPTY: tuple = ()


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (0.5 → 1, 12.5 → 13)."""
    return int(math.floor(value + 0.5))


def progress_percentage(progress_statuses) -> int:
    """Share of completed entries as a whole percent; 0 when there are none."""
    total = len(progress_statuses)
    if total == 0:
        return 0
    completed = sum(1 for ps in progress_statuses if field(ps, "is_completed", False))
    return round_half_up(100 * completed / total)


@dataclass(frozen=True)
class ProjectDerivedStats:
    """Everything the board shows about one project besides the project itself."""

    notes: tuple = _EMPTY
    progress_statuses: tuple = _EMPTY
    user_stories: tuple = _EMPTY
    user_journeys: tuple = _EMPTY
    designs: tuple = _EMPTY
    problem_overview: object | None = None
    stakeholder_count: int = 0
    progress_percentage: int = 0

    @property
    def note_count(self) -> int:
        return len(self.notes)

    @property
    def progress_count(self) -> int:
        return len(self.progress_statuses)

    @property
    def completed_count(self) -> int:
        return sum(1 for ps in self.progress_statuses if field(ps, "is_completed", False))

    @property
    def story_count(self) -> int:
        return len(self.user_stories)

    @property
    def journey_count(self) -> int:
        return len(self.user_journeys)

    @property
    def design_count(self) -> int:
        return len(self.designs)

    def to_dict(self) -> dict:
        return {
            "notes": self.note_count,
            "progress_items": self.progress_count,
            "progress_completed": self.completed_count,
            "progress_percentage": self.progress_percentage,
            "user_stories": self.story_count,
            "user_journeys": self.journey_count,
            "designs": self.design_count,
            "stakeholders": self.stakeholder_count,
            "has_problem_overview": self.problem_overview is not None,
        }


def group_by_project(records) -> dict:
    """Map project_id → list of records, preserving first-seen order."""
    grouped: dict = {}
    for record in records or ():
        grouped.setdefault(field(record, "project_id"), []).append(record)
    return grouped


def build_project_stats(
    projects,
    *,
    notes=(),
    progress_statuses=(),
    user_stories=(),
    user_journeys=(),
    designs=(),
    problem_overviews=(),
    stakeholder_counts=None,
) -> MappingProxyType:
    """Build a read-only ``{project_id: ProjectDerivedStats}`` for every project."""
    notes_by = group_by_project(notes)
    progress_by = group_by_project(progress_statuses)
    stories_by = group_by_project(user_stories)
    journeys_by = group_by_project(user_journeys)
    designs_by = group_by_project(designs)
    overview_by = {field(po, "project_id"): po for po in problem_overviews or ()}
    counts = stakeholder_counts or {}

    stats = {}
    for project in projects:
        pid = field(project, "id")
        progress = tuple(progress_by.get(pid, _EMPTY))
        stats[pid] = ProjectDerivedStats(
            notes=tuple(notes_by.get(pid, _EMPTY)),
            progress_statuses=progress,
            user_stories=tuple(stories_by.get(pid, _EMPTY)),
            user_journeys=tuple(journeys_by.get(pid, _EMPTY)),
            designs=tuple(designs_by.get(pid, _EMPTY)),
            problem_overview=overview_by.get(pid),
            stakeholder_count=int(counts.get(pid, 0) or 0),
            progress_percentage=progress_percentage(progress),
        )
    return MappingProxyType(stats)


class AggregationIndex:
    """Memoized ``build_project_stats`` keyed on the identity of its inputs."""

    _INPUTS = (
        "projects", "notes", "progress_statuses", "user_stories",
        "user_journeys", "designs", "problem_overviews", "stakeholder_counts",
    )

    def __init__(self, slow_build_ms: float = 100.0):
        self.slow_build_ms = slow_build_ms
        self._key: tuple | None = None
        self._inputs: tuple = ()
        self._stats: MappingProxyType = MappingProxyType({})
        self.builds = 0

    def stats(self, projects, **collections) -> MappingProxyType:
        unknown = set(collections) - set(self._INPUTS)
        if unknown:
            raise TypeError(f"Unknown collections: {', '.join(sorted(unknown))}")

        inputs = (projects,) + tuple(collections.get(name) for name in self._INPUTS[1:])
        key = tuple(id(value) for value in inputs)
        if self._key is not None and key == self._key:
            return self._stats

        started = time.perf_counter()
        result = build_project_stats(projects, **collections)
        duration_ms = (time.perf_counter() - started) * 1000
        if duration_ms > self.slow_build_ms:
            logger.warning(
                "Project stats build took %.2fms for %d projects",
                duration_ms, len(result),
                extra={"duration_ms": duration_ms, "project_count": len(result)},
            )

        # Hold the inputs so their ids cannot be reused while cached
        self._inputs = inputs
        self._key = key
        self._stats = result
        self.builds += 1
        return result

    def invalidate(self) -> None:
        self._key = None
        self._inputs = ()
