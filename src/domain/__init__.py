"""
ドメイン層のパッケージ初期化。
"""

from .models import (
    AgentRecord,
    BackupRecord,
    NodeIdentity,
    PBMConfig,
    PITRChunk,
    PITRLock,
    StatusSnapshot,
)
from .value_objects import LabelUniverse

__all__ = [
    "AgentRecord",
    "BackupRecord",
    "NodeIdentity",
    "PBMConfig",
    "PITRChunk",
    "PITRLock",
    "StatusSnapshot",
    "LabelUniverse",
]
