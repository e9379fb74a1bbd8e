from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List

from .config import settings
from .logging import logger
from .models.revision import RevisionEntry


class RevisionStore:
    """Key-to-list store of revision entries, keyed by user ID.

    - get: 保存済みエントリを追加順で返す（無ければ空リスト）
    - add: 末尾に追記する
    - clear: ユーザのエントリを全削除する
    """

    def get(self, user_id: int) -> List[RevisionEntry]:
        raise NotImplementedError

    def add(self, user_id: int, entries: Iterable[RevisionEntry]) -> None:
        raise NotImplementedError

    def clear(self, user_id: int) -> None:
        raise NotImplementedError


class InMemoryRevisionStore(RevisionStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[int, List[RevisionEntry]] = {}

    def get(self, user_id: int) -> List[RevisionEntry]:
        with self._lock:
            return list(self._data.get(user_id, []))

    def add(self, user_id: int, entries: Iterable[RevisionEntry]) -> None:
        batch = list(entries)
        with self._lock:
            self._data.setdefault(user_id, []).extend(batch)
        logger.info("entries_added", user_id=user_id, count=len(batch), backend="memory")

    def clear(self, user_id: int) -> None:
        with self._lock:
            self._data.pop(user_id, None)


class SQLiteRevisionStore(RevisionStore):
    """SQLite-backed store; one connection per call, WAL journal."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        with conn:
            conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS revision_entries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id INTEGER NOT NULL,
                        topic TEXT NOT NULL,
                        date TEXT NOT NULL,
                        label TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    );
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_revision_entries_user ON revision_entries(user_id, id);")
        finally:
            conn.close()

    # --- public API ---
    def get(self, user_id: int) -> List[RevisionEntry]:
        conn = self._connect()
        try:
            cur = conn.execute(
                "SELECT topic, date, label FROM revision_entries WHERE user_id = ? ORDER BY id ASC;",
                (user_id,),
            )
            return [RevisionEntry(topic=row["topic"], date=row["date"], label=row["label"]) for row in cur.fetchall()]
        finally:
            conn.close()

    def add(self, user_id: int, entries: Iterable[RevisionEntry]) -> None:
        batch = list(entries)
        if not batch:
            return
        now = datetime.now(timezone.utc).isoformat()
        conn = self._connect()
        try:
            # 1 トピック分のエントリはまとめて書き込む
            conn.execute("BEGIN IMMEDIATE;")
            conn.executemany(
                "INSERT INTO revision_entries(user_id, topic, date, label, created_at) VALUES (?, ?, ?, ?, ?);",
                [(user_id, e.topic, e.date, e.label, now) for e in batch],
            )
            conn.execute("COMMIT;")
        except Exception:
            # BEGIN 自体が失敗した場合はトランザクションが無いので元の例外を優先する
            try:
                conn.execute("ROLLBACK;")
            except sqlite3.Error:
                pass
            raise
        finally:
            conn.close()
        logger.info("entries_added", user_id=user_id, count=len(batch), backend="sqlite")

    def clear(self, user_id: int) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM revision_entries WHERE user_id = ?;", (user_id,))
        finally:
            conn.close()


def create_store() -> RevisionStore:
    if settings.store_backend == "memory":
        return InMemoryRevisionStore()
    return SQLiteRevisionStore(settings.store_db_path)


store = create_store()
