"""Allocation engine for the duty roster."""

from dutyroster.scheduling.duty_assigner import (
    AllocationConfig,
    AllocationPhase,
    AllocationResult,
    AssignmentRecord,
    DutyAssigner,
    EngineContext,
    StaffDutySummary,
)
from dutyroster.scheduling.patterns import PatternBucket, PatternKey, PatternTable
from dutyroster.scheduling.scheduler import DutyScheduler, StaffRecord

__all__ = [
    # Scheduler facade
    "DutyScheduler",
    "StaffRecord",
    # Engine
    "AllocationConfig",
    "AllocationPhase",
    "AllocationResult",
    "AssignmentRecord",
    "DutyAssigner",
    "EngineContext",
    "StaffDutySummary",
    # Patterns
    "PatternBucket",
    "PatternKey",
    "PatternTable",
]
