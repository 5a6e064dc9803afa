"""Sync planning engine: diff, strategy, plan and error collection."""

from .compare import ObjectPair, compare_objects, sort_objects
from .destination import generate_destination_url, is_batch_source
from .engine import SyncEngine, SyncOptions, SyncResult
from .errors import ErrorAggregator
from .filter import ObjectFilter
from .plan import Command, PlanStream, PlanSummary, SyncPlanner, generate_command
from .strategy import SyncStrategy

__all__ = [
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "SyncStrategy",
    "SyncPlanner",
    "PlanStream",
    "PlanSummary",
    "Command",
    "generate_command",
    "ObjectFilter",
    "ObjectPair",
    "ErrorAggregator",
    "compare_objects",
    "sort_objects",
    "generate_destination_url",
    "is_batch_source",
]
