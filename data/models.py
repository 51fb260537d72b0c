from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple


# Исходы одного стимула N-back (классическая таблица обнаружения сигнала)
OUTCOME_HIT = "hit"
OUTCOME_MISS = "miss"
OUTCOME_FALSE_ALARM = "false_alarm"
OUTCOME_CORRECT_REJECTION = "correct_rejection"

RECORD_NBACK = "nback"
RECORD_ATTENTION = "attention"


@dataclass(frozen=True)
class UserRef:
    """
    Минимум данных о пользователе, который нужен ядру:
    кому записать результат и в какой группе он состоит.
    """
    user_id: str
    group: str


@dataclass(frozen=True)
class NBackSequence:
    symbols: Tuple[str, ...]
    level: int
    match_count: int  # пересчитано по реальной последовательности

    def __len__(self) -> int:
        return len(self.symbols)


@dataclass(frozen=True)
class TrialRecord:
    """Что случилось с одним показанным стимулом."""
    index: int
    symbol: str
    is_match: bool
    outcome: str


@dataclass(frozen=True)
class NBackMetrics:
    group: str
    level: int
    accuracy: float
    hits: int
    misses: int
    false_alarms: int
    possible_matches: int
    promoted: bool = False
    new_level: Optional[int] = None
    level_saved: bool = False

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AttentionMetrics:
    group: str
    task_duration: float  # seconds
    accuracy: float
    gaze_stability: float
    level: int
    sets_completed: int
    promoted: bool = False
    new_level: Optional[int] = None
    level_saved: bool = False

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GazeSample:
    x: float
    y: float
    timestamp: float


@dataclass(frozen=True)
class GazePoint:
    x: float
    y: float


@dataclass
class MovingObject:
    object_id: str
    asset_id: str
    is_target: bool
    x: float
    y: float
    vx: float
    vy: float


@dataclass
class SessionLogEntry:
    kind: str
    user_id: str
    group: str
    submitted_at: str
    metrics: Dict[str, Any]
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        # группа пользователя перекрывает группу задачи из метрик
        payload = {
            **self.metrics,
            "kind": self.kind,
            "user_id": self.user_id,
            "group": self.group,
            "submitted_at": self.submitted_at,
        }
        payload.update(self.extra)
        return payload
