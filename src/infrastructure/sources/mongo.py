"""
PBM のコントロールプレーンコレクションを直接参照する State Source。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping

from bson.timestamp import Timestamp
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from domain import AgentRecord, BackupRecord, PBMConfig, PITRChunk, PITRLock, StatusSnapshot

from .base import DEFAULT_RESULT_LIMIT, StatusSource
from .exceptions import MalformedStatusError, SourceConnectionError, StatusSourceError

LOGGER = logging.getLogger("pbm_exporter.sources.mongo")

CONFIG_COLLECTION = "pbmConfig"
BACKUPS_COLLECTION = "pbmBackups"
AGENTS_COLLECTION = "pbmAgents"
LOCK_COLLECTION = "pbmLock"
LOCK_OP_COLLECTION = "pbmLockOp"
PITR_CHUNKS_COLLECTION = "pbmPITRChunks"
AGENT_HEALTH_FIELDS: tuple[str, ...] = ("pbms", "nodes", "stors")


@dataclass(frozen=True)
class MongoSourceConfig:
    """
    MongoDB 接続設定。
    """

    uri: str
    database: str = "admin"
    max_pool_size: int = 1
    connect_timeout_seconds: float = 10.0
    retry_delay_seconds: float = 1.0
    result_limit: int = DEFAULT_RESULT_LIMIT

    @staticmethod
    def from_mapping(mapping: Mapping[str, object], *, uri: str) -> "MongoSourceConfig":
        if not uri:
            raise ValueError("MongoDB の接続文字列は必須です。")

        database = str(mapping.get("database", "admin"))
        max_pool_size = int(str(mapping.get("max_pool_size", 1)))
        connect_timeout_seconds = float(str(mapping.get("connect_timeout_seconds", 10)))
        retry_delay_seconds = float(str(mapping.get("retry_delay_seconds", 1)))
        result_limit = int(str(mapping.get("result_limit", DEFAULT_RESULT_LIMIT)))

        if not database:
            raise ValueError("source.mongo.database は非空である必要があります。")
        if max_pool_size <= 0:
            raise ValueError("source.mongo.max_pool_size は正の値である必要があります。")
        if connect_timeout_seconds <= 0:
            raise ValueError("source.mongo.connect_timeout_seconds は正の値である必要があります。")
        if retry_delay_seconds < 0:
            raise ValueError("source.mongo.retry_delay_seconds は 0 以上である必要があります。")
        if result_limit <= 0:
            raise ValueError("source.mongo.result_limit は正の値である必要があります。")

        return MongoSourceConfig(
            uri=uri,
            database=database,
            max_pool_size=max_pool_size,
            connect_timeout_seconds=connect_timeout_seconds,
            retry_delay_seconds=retry_delay_seconds,
            result_limit=result_limit,
        )


class MongoStatusSource(StatusSource):
    """
    pymongo でコレクションを参照し StatusSnapshot を構築する実装。

    スクレイプごとに専用のクライアントを生成し、成功・失敗に関わらず必ずクローズする。
    """

    def __init__(
        self,
        config: MongoSourceConfig,
        *,
        client_factory: Callable[[MongoSourceConfig], Any] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._sleep = sleep or time.sleep

    @property
    def config(self) -> MongoSourceConfig:
        return self._config

    def fetch_status(self) -> StatusSnapshot:
        client = self._connect()
        try:
            database = client[self._config.database]
            return self._read_snapshot(database)
        except ConnectionFailure as exc:
            raise SourceConnectionError(f"MongoDB との接続が失われました: {exc}") from exc
        except PyMongoError as exc:
            raise StatusSourceError(f"PBM コレクションの参照に失敗しました: {exc}") from exc
        finally:
            client.close()

    def _connect(self) -> Any:
        LOGGER.debug("Connecting to mongodb database '%s'", self._config.database)
        try:
            client = self._open()
        except PyMongoError as exc:
            # 再試行は1回のみ
            LOGGER.warning(
                "MongoDB connection failed, retrying in %.1fs: %s",
                self._config.retry_delay_seconds,
                exc,
            )
            self._sleep(self._config.retry_delay_seconds)
            try:
                client = self._open()
            except PyMongoError as retry_exc:
                raise SourceConnectionError(f"MongoDB に接続できません: {retry_exc}") from retry_exc
        LOGGER.debug("connected")
        return client

    def _open(self) -> Any:
        client = self._client_factory(self._config)
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise
        return client

    def _read_snapshot(self, database: Any) -> StatusSnapshot:
        config_document = database[CONFIG_COLLECTION].find_one({})
        if config_document is None:
            raise MalformedStatusError("PBM 設定がデータベースに存在しません。")
        config = _to_config(config_document)
        LOGGER.debug("pbm config: pitr_enabled=%s", config.pitr_enabled)

        limit = self._config.result_limit
        backups = [
            _to_backup(document)
            for document in database[BACKUPS_COLLECTION].find({}).sort("name", DESCENDING).limit(limit)
        ]
        LOGGER.debug("backups: %d", len(backups))

        agents = [
            _to_agent(document)
            for document in database[AGENTS_COLLECTION].find({}).sort("n", ASCENDING).limit(limit)
        ]
        LOGGER.debug("agents: %d", len(agents))

        if not config.pitr_enabled:
            return StatusSnapshot(config=config, backups=backups, agents=agents)

        lock_document = database[LOCK_COLLECTION].find_one({"type": "pitr"})
        LOGGER.debug("PITR lock: %s", lock_document)
        if lock_document is None:
            lock_document = database[LOCK_OP_COLLECTION].find_one({"type": "pitr"})
            LOGGER.debug("PITR OP lock: %s", lock_document)

        chunks_collection = database[PITR_CHUNKS_COLLECTION]
        chunks_total = int(chunks_collection.estimated_document_count())
        LOGGER.debug("PITR count: %d", chunks_total)
        chunks = [_to_chunk(document) for document in chunks_collection.find({}).sort("end_ts", DESCENDING).limit(1)]
        LOGGER.debug("PITR last chunk: %s", chunks[0] if chunks else None)

        return StatusSnapshot(
            config=config,
            backups=backups,
            agents=agents,
            pitr_lock=_to_lock(lock_document) if lock_document is not None else None,
            pitr_chunks_total=chunks_total,
            pitr_chunks=chunks,
        )


def _default_client_factory(config: MongoSourceConfig) -> MongoClient:
    timeout_ms = int(config.connect_timeout_seconds * 1000)
    return MongoClient(
        config.uri,
        maxPoolSize=config.max_pool_size,
        connectTimeoutMS=timeout_ms,
        serverSelectionTimeoutMS=timeout_ms,
    )


def _to_config(document: Mapping[str, Any]) -> PBMConfig:
    pitr = document.get("pitr") or {}
    if not isinstance(pitr, Mapping):
        raise MalformedStatusError("pbmConfig.pitr は Mapping である必要があります。")
    return PBMConfig(pitr_enabled=bool(pitr.get("enabled", False)))


def _to_backup(document: Mapping[str, Any]) -> BackupRecord:
    try:
        return BackupRecord(name=str(document["name"]), status=str(document["status"]))
    except (KeyError, ValueError) as exc:
        raise MalformedStatusError(f"pbmBackups のドキュメントが不正です: {exc}") from exc


def _to_agent(document: Mapping[str, Any]) -> AgentRecord:
    health: dict[str, bool] = {}
    for field_name in AGENT_HEALTH_FIELDS:
        section = document.get(field_name)
        health[field_name] = bool(section.get("ok")) if isinstance(section, Mapping) else False
    try:
        return AgentRecord(replica_set=str(document["rs"]), node=str(document["n"]), health=health)
    except (KeyError, ValueError) as exc:
        raise MalformedStatusError(f"pbmAgents のドキュメントが不正です: {exc}") from exc


def _to_lock(document: Mapping[str, Any]) -> PITRLock:
    try:
        heartbeat = _timestamp_seconds(document["hb"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedStatusError(f"PITR ロックのハートビートが不正です: {exc}") from exc
    replica_set = document.get("replset") or document.get("rs")
    node = document.get("node")
    return PITRLock(
        heartbeat=heartbeat,
        replica_set=str(replica_set) if replica_set else None,
        node=str(node) if node else None,
    )


def _to_chunk(document: Mapping[str, Any]) -> PITRChunk:
    try:
        return PITRChunk(
            start_ts=_timestamp_seconds(document["start_ts"]),
            end_ts=_timestamp_seconds(document["end_ts"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedStatusError(f"pbmPITRChunks のドキュメントが不正です: {exc}") from exc


def _timestamp_seconds(value: object) -> int:
    """
    BSON Timestamp の上位32bit（UNIX 秒）を取り出す。
    """

    if isinstance(value, Timestamp):
        return int(value.time)
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, Mapping) and "high" in value:
        return int(value["high"])
    if isinstance(value, bool):
        raise TypeError("真偽値はタイムスタンプとして扱えません。")
    if isinstance(value, (int, float)):
        return int(value)
    raise TypeError(f"タイムスタンプとして解釈できない値です: {value!r}")
