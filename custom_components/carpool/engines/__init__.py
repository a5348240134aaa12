"""Engine modules for Carpool integration.

Contains pure computation engines:
- schedule_engine: Weekly projection of claims and holidays
- conflict_engine: Proposal validation, conflict detection, supersession plans
"""

# Use relative imports within package to avoid mypy module resolution issues
from .conflict_engine import (
    ConflictReport,
    ConflictResolver,
    InvalidProposalError,
    SlotConflict,
    SlotRef,
    SupersessionPlan,
)
from .schedule_engine import ScheduleProjector

__all__ = [
    "ConflictReport",
    "ConflictResolver",
    "InvalidProposalError",
    "ScheduleProjector",
    "SlotConflict",
    "SlotRef",
    "SupersessionPlan",
]
