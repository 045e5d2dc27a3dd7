"""
Profile engine: storage, structural merge and reconciliation with the live
Claude settings file.
"""

from ccm.profiles.marker import CurrentMarker
from ccm.profiles.merge import json_equal, merge, subtract_keys
from ccm.profiles.projects import ProjectMapping, ProjectRegistry
from ccm.profiles.reconcile import (
    ClearOutcome,
    Mismatch,
    Reconciler,
    Scope,
    SwitchAction,
    SwitchOutcome,
    SyncOutcome,
)
from ccm.profiles.store import ProfileEntry, ProfileStore, RemoveOutcome

__all__ = [
    "ClearOutcome",
    "CurrentMarker",
    "Mismatch",
    "ProfileEntry",
    "ProfileStore",
    "ProjectMapping",
    "ProjectRegistry",
    "Reconciler",
    "RemoveOutcome",
    "Scope",
    "SwitchAction",
    "SwitchOutcome",
    "SyncOutcome",
    "json_equal",
    "merge",
    "subtract_keys",
]
