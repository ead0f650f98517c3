"""汇率表存储后端（内存 / SQLite）。"""

from __future__ import annotations

import json
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any

from freightquote.modules.fx.models import normalize_code

KEY_PREFIX = "fx_"


def rate_cache_key(base: str) -> str:
    return f"{KEY_PREFIX}{normalize_code(base)}"


class IRateStore(ABC):
    """按 key 存取序列化汇率表的存储接口。"""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        pass

    @abstractmethod
    def put(self, key: str, payload: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        pass


class InMemoryRateStore(IRateStore):
    """进程内存储，进程退出即丢失。"""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            raw = self._entries.get(key)
        return json.loads(raw) if raw is not None else None

    def put(self, key: str, payload: dict[str, Any]) -> None:
        raw = json.dumps(payload, ensure_ascii=False)
        with self._lock:
            self._entries[key] = raw

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)


class SqliteRateStore(IRateStore):
    """SQLite 持久化存储，跨进程重启保留汇率表。"""

    def __init__(self, db_path: str = "data/fx_rates.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """提交或回滚事务后关闭连接。"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        with closing(conn), conn:
            yield conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS fx_rate_tables (
                    cache_key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at INTEGER NOT NULL
                );
                """
            )

    def get(self, key: str) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM fx_rate_tables WHERE cache_key=?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["payload"])

    def put(self, key: str, payload: dict[str, Any]) -> None:
        raw = json.dumps(payload, ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO fx_rate_tables(cache_key, payload, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    payload=excluded.payload,
                    updated_at=excluded.updated_at
                """,
                (key, raw, int(time.time())),
            )

    def keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT cache_key FROM fx_rate_tables ORDER BY cache_key").fetchall()
        return [row["cache_key"] for row in rows]
