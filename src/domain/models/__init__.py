"""
ドメインエンティティの公開API。
"""

from .agent import NODE_STATUS_ERROR, NODE_STATUS_OK, NODE_STATUSES, AgentRecord, NodeIdentity
from .backup import ERROR_STATUS, BackupRecord, parse_backup_timestamp
from .pitr import PITR_HEARTBEAT_GRACE_SECONDS, PITRChunk, PITRLock
from .status_snapshot import PBMConfig, StatusSnapshot

__all__ = [
    "AgentRecord",
    "BackupRecord",
    "ERROR_STATUS",
    "NODE_STATUS_ERROR",
    "NODE_STATUS_OK",
    "NODE_STATUSES",
    "NodeIdentity",
    "PBMConfig",
    "PITRChunk",
    "PITRLock",
    "PITR_HEARTBEAT_GRACE_SECONDS",
    "StatusSnapshot",
    "parse_backup_timestamp",
]
