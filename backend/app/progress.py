from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from backend.app.db import read_sessions, read_sighting_counts
from study.rules import calculate_total_sightings

HISTORY_SIZE = 10


@dataclass
class ProgressAgg:
    """Сводка для экрана прогресса: последние сессии + наблюдения."""

    user_id: str
    sessions: int = 0
    accuracy_sum: float = 0.0
    current_level: int = 1
    history: list[float] = field(default_factory=list)

    def add_session(self, payload: dict[str, Any]) -> None:
        accuracy = float(payload.get("accuracy", 0.0) or 0.0)
        level = int(payload.get("level") or 1)
        # несохранённое повышение не меняет текущий уровень
        if payload.get("level_saved", True):
            level = int(payload.get("new_level") or level)
        self.sessions += 1
        self.accuracy_sum += accuracy
        self.history.append(accuracy)
        self.current_level = max(self.current_level, level)

    def to_row(self, sightings_count: int) -> dict[str, Any]:
        avg = self.accuracy_sum / self.sessions if self.sessions > 0 else 0.0
        return {
            "user_id": self.user_id,
            "total_sessions": self.sessions,
            "avg_accuracy": round(avg, 4),
            "current_level": self.current_level,
            # старые -> новые, как на графике
            "accuracy_history": list(reversed(self.history)),
            "sightings_count": sightings_count,
        }


def build_progress(db_path: Path, user_id: str, kind: Optional[str] = None) -> dict[str, Any]:
    agg = ProgressAgg(user_id=user_id)
    for payload in read_sessions(db_path, user_id, kind=kind, limit=HISTORY_SIZE):
        agg.add_session(payload)
    sightings = calculate_total_sightings(read_sighting_counts(db_path, user_id))
    return agg.to_row(sightings)
