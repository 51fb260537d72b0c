import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from data.errors import StoreError
from data.models import SessionLogEntry, UserRef


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_entry(kind: str, user: UserRef, metrics: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> SessionLogEntry:
    return SessionLogEntry(
        kind=kind,
        user_id=user.user_id,
        group=user.group,
        submitted_at=utc_now_iso(),
        metrics=dict(metrics),
        extra=dict(extra or {}),
    )


class SessionLog(Protocol):
    def write(self, entry: SessionLogEntry) -> None:
        ...


class JsonlSessionLog:
    """Журнал сессий: одна JSON-строка на завершённую сессию."""

    def __init__(self, path: str = "data/sessions.jsonl") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, entry: SessionLogEntry) -> None:
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as exc:
            raise StoreError(f"cannot append to {self.path}") from exc

    def read_entries(self, user_id: Optional[str] = None, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        records: List[Dict[str, Any]] = []
        with self.path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(rec, dict):
                    continue
                if user_id is not None and rec.get("user_id") != user_id:
                    continue
                if kind is not None and rec.get("kind") != kind:
                    continue
                records.append(rec)
        return records


class MemorySessionLog:
    def __init__(self) -> None:
        self.entries: List[SessionLogEntry] = []

    def write(self, entry: SessionLogEntry) -> None:
        self.entries.append(entry)
