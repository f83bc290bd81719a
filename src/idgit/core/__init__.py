"""Core machinery: git backend, classification, diff extraction and history."""

from .backend import ChangeRecord, ChangeStatus, FileSide, GitBackend
from .classifier import DeltaClassifier
from .commands import StagingAction, StagingCommand
from .extractor import PathDiffExtractor
from .history import ChangeHistory
from .repository import Repo

__all__ = [
    "ChangeHistory",
    "ChangeRecord",
    "ChangeStatus",
    "DeltaClassifier",
    "FileSide",
    "GitBackend",
    "PathDiffExtractor",
    "Repo",
    "StagingAction",
    "StagingCommand",
]
