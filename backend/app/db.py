import hashlib
import json
import sqlite3
from pathlib import Path
from typing import Any, Optional


def ensure_db(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                received_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                kind TEXT NOT NULL,
                user_id TEXT NOT NULL,
                user_group TEXT NOT NULL,
                submitted_at TEXT NOT NULL,
                accuracy REAL NOT NULL,
                level INTEGER NOT NULL,
                client_version TEXT,
                api_key_hash TEXT NOT NULL,
                payload_json TEXT NOT NULL
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_sessions_user_ts ON sessions(user_id, submitted_at);"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_sessions_kind_ts ON sessions(kind, submitted_at);"
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sightings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                received_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                user_id TEXT NOT NULL,
                has_sighted INTEGER NOT NULL,
                sighting_count INTEGER NOT NULL,
                confidence INTEGER
            );
            """
        )


def write_session(db_path: Path, api_key: str, client_version: str, session: dict[str, Any]) -> int:
    api_key_hash = hashlib.sha256(api_key.encode("utf-8")).hexdigest()
    with sqlite3.connect(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO sessions (
                kind, user_id, user_group, submitted_at, accuracy, level,
                client_version, api_key_hash, payload_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session["kind"],
                session["user_id"],
                session["group"],
                session["submitted_at"],
                float(session["accuracy"]),
                int(session["level"]),
                client_version,
                api_key_hash,
                json.dumps(session, ensure_ascii=False, separators=(",", ":")),
            ),
        )
        conn.commit()
        return int(cur.lastrowid)


def read_sessions(
    db_path: Path,
    user_id: str,
    kind: Optional[str] = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """Сессии пользователя, новые первыми."""
    safe_limit = max(1, min(1000, int(limit)))
    if not db_path.exists():
        return []

    query = "SELECT id, payload_json FROM sessions WHERE user_id = ?"
    params: list[Any] = [user_id]
    if kind is not None:
        query += " AND kind = ?"
        params.append(kind)
    query += " ORDER BY submitted_at DESC, id DESC LIMIT ?"
    params.append(safe_limit)

    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(query, params).fetchall()

    records: list[dict[str, Any]] = []
    for row_id, payload_json in rows:
        try:
            payload = json.loads(payload_json) if payload_json else {}
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        payload["id"] = row_id
        records.append(payload)
    return records


def write_sighting(db_path: Path, user_id: str, has_sighted: bool, count: int, confidence: Optional[int]) -> int:
    # Отрицательный отчёт хранится с count = 0 и без оценки уверенности.
    with sqlite3.connect(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO sightings (user_id, has_sighted, sighting_count, confidence)
            VALUES (?, ?, ?, ?)
            """,
            (
                user_id,
                int(bool(has_sighted)),
                int(count) if has_sighted else 0,
                int(confidence) if has_sighted and confidence is not None else None,
            ),
        )
        conn.commit()
        return int(cur.lastrowid)


def read_sighting_counts(db_path: Path, user_id: str) -> list[Optional[int]]:
    if not db_path.exists():
        return []
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            "SELECT sighting_count FROM sightings WHERE user_id = ? ORDER BY id ASC",
            (user_id,),
        ).fetchall()
    return [row[0] for row in rows]
