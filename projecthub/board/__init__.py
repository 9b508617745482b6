"""
Project board engine: ordering, aggregation, search and pagination.

    from projecthub.board import ProjectBoard, ServiceProjectStore

    board = ProjectBoard(ServiceProjectStore(), auth=provider)
    await board.open(user_id)
    await board.move(moved_id, target_id)
"""

from projecthub.board.aggregation import AggregationIndex, ProjectDerivedStats, build_project_stats
from projecthub.board.controller import ProjectBoard
from projecthub.board.filter_pager import DelayedTransition, FilterPager, filter_projects
from projecthub.board.reconciler import OrderReconciler, reconcile
from projecthub.board.reorder import ReorderCoordinator, ReorderPersistFailed, apply_move
from projecthub.board.stats_loader import StatsBatchLoader
from projecthub.board.store import ProjectStore, ServiceProjectStore

__all__ = [
    "AggregationIndex",
    "DelayedTransition",
    "FilterPager",
    "OrderReconciler",
    "ProjectBoard",
    "ProjectDerivedStats",
    "ProjectStore",
    "ReorderCoordinator",
    "ReorderPersistFailed",
    "ServiceProjectStore",
    "StatsBatchLoader",
    "apply_move",
    "build_project_stats",
    "filter_projects",
    "reconcile",
]
