"""mathundo - Undo/redo history for editable math expressions."""

from .model import ApplyOptions, DocumentAdapter, ExpressionModel, InvalidSnapshotError
from .undo import CallbackHooks, HistoryManager, LifecycleHooks, Snapshot, TransitionKind

__all__ = [
    'ApplyOptions',
    'CallbackHooks',
    'DocumentAdapter',
    'ExpressionModel',
    'HistoryManager',
    'InvalidSnapshotError',
    'LifecycleHooks',
    'Snapshot',
    'TransitionKind',
]
