import logging
import random
from typing import Callable, List, Optional

from adaptation.levels import calculate_accuracy, next_level
from config.settings import LevelConfig, NBackConfig
from data.models import (
    NBackMetrics,
    NBackSequence,
    OUTCOME_HIT,
    OUTCOME_MISS,
    RECORD_NBACK,
    TrialRecord,
    UserRef,
)
from data.profile_store import ProfileStore
from data.session_log import SessionLog, build_entry
from game.nback.sequence import classify_response, generate_sequence, is_match
from game.scheduler import TickScheduler, TimerHandle

logger = logging.getLogger(__name__)


PHASE_INTRO = "INTRO"
PHASE_RUNNING = "RUNNING"
PHASE_RESULTS = "RESULTS"


class NBackSession:
    """
    Одна сессия N-back: INTRO -> RUNNING -> RESULTS.

    - start() генерирует последовательность и заводит таймер смены стимула
    - respond() — нажатие "совпадение"; засчитывается только первое на стимул
    - на границе стимула непойманное совпадение становится промахом (miss)
    - finish_session() считает точность, решает про повышение уровня
      и отдаёт метрики наружу; ошибки хранилищ только логируются
    """

    def __init__(
        self,
        user: UserRef,
        level: int,
        scheduler: TickScheduler,
        profile_store: Optional[ProfileStore] = None,
        session_log: Optional[SessionLog] = None,
        config: NBackConfig = NBackConfig(),
        level_cfg: LevelConfig = LevelConfig(),
        rng: Optional[random.Random] = None,
        on_session_complete: Optional[Callable[[NBackMetrics], None]] = None,
    ) -> None:
        if not level_cfg.min_level <= level <= level_cfg.max_level:
            raise ValueError(f"level {level} outside [{level_cfg.min_level}, {level_cfg.max_level}]")
        self.user = user
        self.level = level
        self.scheduler = scheduler
        self.profile_store = profile_store
        self.session_log = session_log
        self.config = config
        self.level_cfg = level_cfg
        self.rng = rng or random.Random()
        self.on_session_complete = on_session_complete

        self.phase: str = PHASE_INTRO
        self.sequence: Optional[NBackSequence] = None
        self.current_index: int = 0
        self.responded: bool = False
        self.feedback: Optional[str] = None
        self.trials: List[TrialRecord] = []

        self.hits = 0
        self.misses = 0
        self.false_alarms = 0

        self._advance_timer: Optional[TimerHandle] = None
        self._finishing = False
        self._finished = False
        self.metrics: Optional[NBackMetrics] = None

    @property
    def possible_matches(self) -> int:
        return self.sequence.match_count if self.sequence is not None else 0

    @property
    def current_symbol(self) -> Optional[str]:
        if self.phase != PHASE_RUNNING or self.sequence is None:
            return None
        return self.sequence.symbols[self.current_index]

    def start(self) -> None:
        self.teardown()
        self.hits = 0
        self.misses = 0
        self.false_alarms = 0
        self.trials = []
        self.metrics = None
        self._finishing = False
        self._finished = False

        self.sequence = generate_sequence(
            length=self.config.sequence_length,
            level=self.level,
            alphabet=self.config.alphabet,
            forced_match_probability=self.config.forced_match_probability,
            rng=self.rng,
        )
        logger.debug("N-back level %s: %s real matches", self.level, self.sequence.match_count)

        self.current_index = 0
        self.responded = False
        self.feedback = None
        self.phase = PHASE_RUNNING
        self._advance_timer = self.scheduler.call_every(self.config.stimulus_duration_ms, self._on_stimulus_deadline)

    def respond(self) -> Optional[str]:
        """Нажатие "совпадение". Возвращает исход или None, если нажатие проигнорировано."""
        if self.phase != PHASE_RUNNING or self.responded:
            return None
        self.responded = True
        outcome = classify_response(self.sequence.symbols, self.level, self.current_index, responded=True)
        if outcome == OUTCOME_HIT:
            self.hits += 1
        else:
            self.false_alarms += 1
        self.feedback = outcome
        return outcome

    def _on_stimulus_deadline(self, now_ms: int) -> None:
        if self.phase != PHASE_RUNNING:
            return
        symbols = self.sequence.symbols
        index = self.current_index
        if self.responded:
            outcome = self.feedback
        else:
            outcome = classify_response(symbols, self.level, index, responded=False)
            if outcome == OUTCOME_MISS:
                self.misses += 1
        self.trials.append(
            TrialRecord(
                index=index,
                symbol=symbols[index],
                is_match=is_match(symbols, self.level, index),
                outcome=outcome,
            )
        )

        next_index = index + 1
        if next_index >= len(symbols):
            self.finish_session()
            return
        self.current_index = next_index
        self.responded = False
        self.feedback = None

    def finish_session(self) -> Optional[NBackMetrics]:
        # Повторный вызов (в том числе из колбэков хранилищ) ничего не делает.
        if self._finishing or self._finished:
            return None
        self._finishing = True
        self.teardown()
        self.phase = PHASE_RESULTS
        try:
            accuracy = calculate_accuracy(self.hits, self.possible_matches)
            new_level = next_level(
                accuracy,
                self.level,
                threshold=self.level_cfg.up_accuracy,
                max_level=self.level_cfg.max_level,
            )
            promoted = new_level != self.level
            level_saved = promoted and self._store_level(new_level)

            metrics = NBackMetrics(
                group=self.config.group,
                level=self.level,
                accuracy=accuracy,
                hits=self.hits,
                misses=self.misses,
                false_alarms=self.false_alarms,
                possible_matches=self.possible_matches,
                promoted=promoted,
                new_level=new_level if promoted else None,
                level_saved=level_saved,
            )
            logger.info(
                "N-back session for %s done: level=%s accuracy=%.2f hits=%s/%s",
                self.user.user_id,
                self.level,
                accuracy,
                self.hits,
                self.possible_matches,
            )
            self._store_metrics(metrics)
            self.metrics = metrics
            self._finished = True
        finally:
            self._finishing = False

        if self.on_session_complete is not None:
            self.on_session_complete(metrics)
        return metrics

    def teardown(self) -> None:
        self.scheduler.cancel(self._advance_timer)
        self._advance_timer = None

    def _store_level(self, new_level: int) -> bool:
        if self.profile_store is None:
            return False
        try:
            self.profile_store.set_level(self.user.user_id, self.config.profile_key, new_level)
        except Exception:
            # уровень не сохранился, сессию всё равно завершаем
            logger.exception("Level up failed for user %s (%s -> %s)", self.user.user_id, self.level, new_level)
            return False
        logger.info("User %s promoted to N-back level %s", self.user.user_id, new_level)
        return True

    def _store_metrics(self, metrics: NBackMetrics) -> None:
        if self.session_log is None:
            return
        try:
            self.session_log.write(build_entry(RECORD_NBACK, self.user, metrics.to_record()))
        except Exception:
            logger.exception("Failed to save N-back session for user %s", self.user.user_id)
