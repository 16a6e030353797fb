"""cuematrix - show routing matrix with gangs, mute/solo and change events."""

from cuematrix.matrix import Matrix
from cuematrix.models import (
    DISCONNECTED,
    ChangeEvent,
    ChangeKind,
    GangMember,
    MemberKind,
    Route,
    SnapshotError,
)
from cuematrix.resolver import db_to_linear, gain_to_db

__all__ = [
    "Matrix",
    "DISCONNECTED",
    "ChangeEvent",
    "ChangeKind",
    "GangMember",
    "MemberKind",
    "Route",
    "SnapshotError",
    "db_to_linear",
    "gain_to_db",
]
