from __future__ import annotations

import json
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from mathref.models.block import is_equation
from mathref.models.page import MarkdownPage, page_from_record


@dataclass(slots=True)
class SQLiteIndexConfig:
    """Configuration for the SQLite-backed index record store."""

    db_path: Path
    enable_wal: bool = True


class SQLiteIndexStore:
    """Persists serialized page records plus an equation table with FTS5 search."""

    def __init__(self, config: SQLiteIndexConfig) -> None:
        self.config = config
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self.config.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.config.db_path)
            self._conn.row_factory = sqlite3.Row
            if self.config.enable_wal:
                self._conn.execute("PRAGMA journal_mode=WAL;")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize(self) -> None:
        """Create tables and FTS indices if they do not exist."""

        cursor = self.conn.cursor()
        cursor.executescript(
            """
            CREATE TABLE IF NOT EXISTS pages (
                path TEXT PRIMARY KEY,
                record TEXT NOT NULL,
                extension TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS equations (
                path TEXT NOT NULL,
                ordinal INTEGER NOT NULL,
                block_id TEXT,
                manual_tag TEXT,
                label TEXT,
                math_text TEXT NOT NULL,
                start_line INTEGER NOT NULL,
                end_line INTEGER NOT NULL,
                PRIMARY KEY (path, ordinal),
                FOREIGN KEY(path) REFERENCES pages(path)
            );

            CREATE INDEX IF NOT EXISTS idx_equations_label
                ON equations (label);

            CREATE VIRTUAL TABLE IF NOT EXISTS equations_fts USING fts5(
                path UNINDEXED,
                label,
                math_text,
                content='equations',
                content_rowid='rowid'
            );

            CREATE TRIGGER IF NOT EXISTS equations_ai AFTER INSERT ON equations BEGIN
                INSERT INTO equations_fts(rowid, path, label, math_text)
                VALUES (new.rowid, new.path, new.label, new.math_text);
            END;

            CREATE TRIGGER IF NOT EXISTS equations_ad AFTER DELETE ON equations BEGIN
                INSERT INTO equations_fts(equations_fts, rowid, path, label, math_text)
                VALUES ('delete', old.rowid, old.path, old.label, old.math_text);
            END;
            """
        )
        self.conn.commit()

    def upsert_page(self, page: MarkdownPage) -> None:
        """Replace the stored record and equation rows of ``page``."""

        now = datetime.now(timezone.utc).isoformat()
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO pages(path, record, extension, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                record=excluded.record,
                extension=excluded.extension,
                updated_at=excluded.updated_at;
            """,
            (page.path, json.dumps(page.to_json()), page.extension, now),
        )
        cursor.execute("DELETE FROM equations WHERE path = ?", (page.path,))
        cursor.executemany(
            """
            INSERT INTO equations(path, ordinal, block_id, manual_tag, label, math_text, start_line, end_line)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                (
                    page.path,
                    block.ordinal,
                    block.block_id,
                    block.manual_tag,
                    block.label,
                    block.math_text,
                    block.position.start,
                    block.position.end,
                )
                for block in page.blocks
                if is_equation(block)
            ),
        )
        self.conn.commit()

    def fetch_record(self, path: str) -> Optional[Dict[str, Any]]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT record FROM pages WHERE path = ?;", (path,))
        row = cursor.fetchone()
        return json.loads(row["record"]) if row else None

    def load_page(self, path: str) -> Optional[MarkdownPage]:
        record = self.fetch_record(path)
        return page_from_record(record) if record else None

    def iter_paths(self) -> List[str]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT path FROM pages ORDER BY path;")
        return [row["path"] for row in cursor.fetchall()]

    def find_equations(self, *, label: Optional[str] = None, path: Optional[str] = None) -> List[sqlite3.Row]:
        cursor = self.conn.cursor()
        clauses: List[str] = []
        params: List[object] = []
        if label is not None:
            clauses.append("label = ?")
            params.append(label)
        if path is not None:
            clauses.append("path = ?")
            params.append(path)
        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor.execute(
            f"""
            SELECT *
            FROM equations
            {where_sql}
            ORDER BY path, ordinal;
            """,
            params,
        )
        return cursor.fetchall()

    def search_equations(self, query: str, *, limit: int = 10) -> List[sqlite3.Row]:
        """Full-text search over equation labels and LaTeX source."""

        safe = re.sub(r"[^\w\s]", " ", query)
        safe = re.sub(r"\s+", " ", safe).strip()
        if not safe:
            return []
        match_query = " OR ".join(safe.split(" "))

        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT e.*,
                   bm25(equations_fts) AS score
            FROM equations e
            JOIN equations_fts ON e.rowid = equations_fts.rowid
            WHERE equations_fts MATCH ?
            ORDER BY score
            LIMIT ?;
            """,
            (match_query, limit),
        )
        return cursor.fetchall()

    def delete_page(self, path: str) -> None:
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM equations WHERE path = ?", (path,))
        cursor.execute("DELETE FROM pages WHERE path = ?", (path,))
        self.conn.commit()

    def clear_all(self) -> None:
        cursor = self.conn.cursor()
        cursor.executescript(
            """
            DELETE FROM equations;
            DELETE FROM pages;
            """
        )
        self.conn.commit()


__all__ = ["SQLiteIndexConfig", "SQLiteIndexStore"]
