"""Generation history journaling and rollback."""

from blueprintx.history.manager import GenerationHistoryManager, backup_filename
from blueprintx.history.models import (
    HistoryEntry,
    HistoryRun,
    RecordOutcome,
    RunManifest,
)
from blueprintx.history.rollback import (
    RollbackAction,
    RollbackActionKind,
    RollbackOutcome,
    RollbackReport,
    RollbackService,
    RollbackStatus,
)

__all__ = [
    "GenerationHistoryManager",
    "HistoryEntry",
    "HistoryRun",
    "RecordOutcome",
    "RollbackAction",
    "RollbackActionKind",
    "RollbackOutcome",
    "RollbackReport",
    "RollbackService",
    "RollbackStatus",
    "RunManifest",
    "backup_filename",
]
