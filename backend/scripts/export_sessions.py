import argparse
import json
import sqlite3
from pathlib import Path
from typing import Any, Optional


def to_jsonl(path: Path, records: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for rec in records:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")


def load_sessions(db_path: Path, kind: Optional[str] = None) -> list[dict[str, Any]]:
    if not db_path.exists():
        return []
    query = "SELECT payload_json FROM sessions"
    params: list[Any] = []
    if kind is not None:
        query += " WHERE kind = ?"
        params.append(kind)
    query += " ORDER BY submitted_at ASC, id ASC"
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(query, params).fetchall()

    records: list[dict[str, Any]] = []
    for (payload_json,) in rows:
        try:
            payload = json.loads(payload_json) if payload_json else {}
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            records.append(payload)
    return records


def export_sessions(db_path: Path, out_dir: Path) -> dict[str, int]:
    """Выгружает сессии из SQLite в JSONL по типам задач: <out_dir>/<kind>.jsonl."""
    counts: dict[str, int] = {}
    for kind in ("nback", "attention"):
        records = load_sessions(db_path, kind=kind)
        to_jsonl(out_dir / f"{kind}.jsonl", records)
        counts[kind] = len(records)
    return counts


def main() -> None:
    project_root = Path(__file__).resolve().parents[2]
    default_db = project_root / "backend" / "data" / "sessions.db"
    default_out = project_root / "data" / "export"

    parser = argparse.ArgumentParser(description="Export backend SQLite sessions into per-task JSONL files")
    parser.add_argument("--db", default=str(default_db), help="Path to backend SQLite db")
    parser.add_argument("--out-dir", default=str(default_out), help="Directory for <kind>.jsonl files")
    args = parser.parse_args()

    counts = export_sessions(Path(args.db), Path(args.out_dir))
    print("Export complete: " + ", ".join(f"{k}={v}" for k, v in counts.items()))


if __name__ == "__main__":
    main()
