"""
``pbm status`` コマンドの JSON 出力を解析する State Source。
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from domain import AgentRecord, BackupRecord, PBMConfig, PITRChunk, PITRLock, StatusSnapshot

from .base import DEFAULT_RESULT_LIMIT, StatusSource
from .exceptions import MalformedStatusError, SourceConnectionError, StatusSourceError

LOGGER = logging.getLogger("pbm_exporter.sources.cli")

DEFAULT_COMMAND: tuple[str, ...] = ("pbm", "status", "--out=json")
URI_ENV_VAR = "PBM_MONGODB_URI"

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


@dataclass(frozen=True)
class CliSourceConfig:
    """
    pbm CLI 呼び出し設定。
    """

    uri: str
    command: tuple[str, ...] = DEFAULT_COMMAND
    timeout_seconds: float | None = None
    result_limit: int = DEFAULT_RESULT_LIMIT

    @staticmethod
    def from_mapping(mapping: Mapping[str, object], *, uri: str) -> "CliSourceConfig":
        if not uri:
            raise ValueError("MongoDB の接続文字列は必須です。")

        raw_command = mapping.get("command", DEFAULT_COMMAND)
        if isinstance(raw_command, str):
            command = tuple(raw_command.split())
        elif isinstance(raw_command, Sequence):
            command = tuple(str(part) for part in raw_command)
        else:
            raise ValueError("source.cli.command は文字列または配列で指定してください。")
        if not command:
            raise ValueError("source.cli.command は空にできません。")

        raw_timeout = mapping.get("timeout_seconds")
        timeout_seconds = float(str(raw_timeout)) if raw_timeout is not None else None
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("source.cli.timeout_seconds は正の値である必要があります。")

        result_limit = int(str(mapping.get("result_limit", DEFAULT_RESULT_LIMIT)))
        if result_limit <= 0:
            raise ValueError("source.cli.result_limit は正の値である必要があります。")

        return CliSourceConfig(
            uri=uri,
            command=command,
            timeout_seconds=timeout_seconds,
            result_limit=result_limit,
        )


class PbmCliStatusSource(StatusSource):
    """
    pbm CLI を子プロセスとして起動し、出力された JSON を StatusSnapshot に変換する実装。

    標準エラーへの出力は、終了コードに関わらず取得失敗として扱う。
    ``pbm status`` はハートビートを直接公開しないため、PITR が稼働中でエラーがない場合は
    取得時刻をハートビートとみなす。
    """

    def __init__(
        self,
        config: CliSourceConfig,
        *,
        runner: Runner | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config
        self._runner = runner or subprocess.run
        self._clock = clock or time.time

    @property
    def config(self) -> CliSourceConfig:
        return self._config

    def fetch_status(self) -> StatusSnapshot:
        output = self._run()
        try:
            document = json.loads(output)
        except json.JSONDecodeError as exc:
            raise MalformedStatusError(f"pbm status の出力が JSON として不正です: {exc}") from exc
        if not isinstance(document, Mapping):
            raise MalformedStatusError("pbm status の出力のトップレベルは Mapping である必要があります。")
        return parse_status_document(document, now=int(self._clock()), limit=self._config.result_limit)

    def _run(self) -> str:
        command = list(self._config.command)
        env = dict(os.environ)
        env[URI_ENV_VAR] = self._config.uri
        LOGGER.debug("Running %s", " ".join(command))
        try:
            completed = self._runner(
                command,
                capture_output=True,
                text=True,
                env=env,
                timeout=self._config.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise SourceConnectionError(f"pbm status がタイムアウトしました ({exc.timeout}s)。") from exc
        except OSError as exc:
            raise StatusSourceError(f"pbm コマンドを起動できません: {exc}") from exc

        if completed.stderr and completed.stderr.strip():
            raise MalformedStatusError(f"pbm status がエラーを出力しました: {completed.stderr.strip()}")
        if completed.returncode != 0:
            raise StatusSourceError(f"pbm status が終了コード {completed.returncode} で失敗しました。")
        return completed.stdout


def parse_status_document(document: Mapping[str, Any], *, now: int, limit: int = DEFAULT_RESULT_LIMIT) -> StatusSnapshot:
    """
    ``pbm status --out=json`` の出力を StatusSnapshot に変換する。

    Raises:
        MalformedStatusError: 必須セクションが欠落している、または形式が不正な場合。
    """

    try:
        pitr = _require_mapping(document, "pitr")
        backups_section = _require_mapping(document, "backups")
        cluster = document.get("cluster") or []
        if not isinstance(cluster, Sequence):
            raise MalformedStatusError("cluster は配列である必要があります。")

        config = PBMConfig(pitr_enabled=bool(pitr.get("conf", False)))

        snapshots = backups_section.get("snapshot") or []
        backups = sorted(
            (BackupRecord(name=str(item["name"]), status=str(item["status"])) for item in snapshots),
            key=lambda backup: backup.name,
            reverse=True,
        )[:limit]

        agents: list[AgentRecord] = []
        for replica_set in cluster:
            rs_name = str(replica_set["rs"])
            for node in replica_set.get("nodes") or []:
                agents.append(_to_agent(rs_name, node))
        agents.sort(key=lambda agent: agent.node)
        agents = agents[:limit]

        if not config.pitr_enabled:
            return StatusSnapshot(config=config, backups=backups, agents=agents)

        lock = PITRLock(heartbeat=now) if pitr.get("run") and not pitr.get("error") else None

        chunks_section = backups_section.get("pitrChunks") or {}
        raw_chunks = chunks_section.get("pitrChunks") or []
        chunks = [
            PITRChunk(start_ts=int(item["range"]["start"]), end_ts=int(item["range"]["end"])) for item in raw_chunks
        ]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise MalformedStatusError(f"pbm status の出力形式が不正です: {exc!r}") from exc

    return StatusSnapshot(
        config=config,
        backups=backups,
        agents=agents,
        pitr_lock=lock,
        pitr_chunks_total=len(chunks),
        pitr_chunks=chunks,
    )


def _require_mapping(document: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = document.get(key)
    if not isinstance(value, Mapping):
        raise MalformedStatusError(f"pbm status の出力に '{key}' セクションが存在しません。")
    return value


def _to_agent(replica_set: str, node: Mapping[str, Any]) -> AgentRecord:
    host = str(node["host"])
    prefix = f"{replica_set}/"
    member = host[len(prefix):] if host.startswith(prefix) else host
    errors = node.get("errors") or []
    return AgentRecord(
        replica_set=replica_set,
        node=member,
        health={"agent": bool(node.get("ok", False)), "node": not errors},
    )
