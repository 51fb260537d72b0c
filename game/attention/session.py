import logging
import random
from typing import Callable, Dict, List, Optional

import pygame

from adaptation.levels import next_level
from config.settings import AttentionConfig, GazeConfig, LevelConfig
from data.models import AttentionMetrics, GazeSample, MovingObject, RECORD_ATTENTION, UserRef
from data.profile_store import ProfileStore
from data.session_log import SessionLog, build_entry
from game.attention.dwell import DwellState, dwell_accuracy, dwell_step
from game.attention.objects import AssetProvider, find_target, spawn_objects, step_objects
from game.gaze.channel import GazeChannel, GazeSubscription
from game.gaze.smoothing import GazeSmoother, in_bounds
from game.scheduler import TickScheduler, TimerHandle

logger = logging.getLogger(__name__)


PHASE_INTRO = "INTRO"
PHASE_RUNNING = "RUNNING"
PHASE_REST = "REST"
PHASE_RESULTS = "RESULTS"


class AttentionSession:
    """
    Задача на внимание со слежением взглядом.

    Сессия состоит из нескольких подходов (sets) по cfg.set_duration_sec с отдыхом между ними.
    Время на цели и общее время копятся через все подходы, точность одна на сессию.
    tick(dt_ms) вызывается каждый кадр, таймеры обратного отсчёта живут в планировщике.
    """

    def __init__(
        self,
        user: UserRef,
        level: int,
        scheduler: TickScheduler,
        gaze_channel: GazeChannel,
        assets: AssetProvider,
        area: Optional[pygame.Rect] = None,
        profile_store: Optional[ProfileStore] = None,
        session_log: Optional[SessionLog] = None,
        config: AttentionConfig = AttentionConfig(),
        gaze_cfg: GazeConfig = GazeConfig(),
        level_cfg: LevelConfig = LevelConfig(),
        rng: Optional[random.Random] = None,
        on_session_complete: Optional[Callable[[AttentionMetrics], None]] = None,
    ) -> None:
        if config.total_sets < 1:
            raise ValueError("total_sets must be >= 1")
        self.user = user
        self.level = level
        self.scheduler = scheduler
        self.gaze_channel = gaze_channel
        self.assets = assets
        self.area = pygame.Rect(area) if area is not None else pygame.Rect(0, 0, config.bounds_width, config.bounds_height)
        self.profile_store = profile_store
        self.session_log = session_log
        self.config = config
        self.level_cfg = level_cfg
        self.rng = rng or random.Random()
        self.on_session_complete = on_session_complete

        self.phase: str = PHASE_INTRO
        self.current_set: int = 1
        self.sets_completed: int = 0
        self.seconds_left: int = config.set_duration_sec
        self.rest_seconds_left: int = 0
        self.hint_active: bool = False

        self.objects: List[MovingObject] = []
        self.smoother = GazeSmoother(self.area, gaze_cfg)
        self.dwell = DwellState()
        self.gaze_stream: List[Dict[str, int]] = []
        self.latest_sample: Optional[GazeSample] = None

        self._subscription: Optional[GazeSubscription] = None
        self._countdown_timer: Optional[TimerHandle] = None
        self._hint_timer: Optional[TimerHandle] = None
        self._rest_timer: Optional[TimerHandle] = None
        self._finishing = False
        self._finished = False
        self.metrics: Optional[AttentionMetrics] = None

    @property
    def locked(self) -> bool:
        return self.dwell.locked

    @property
    def accuracy(self) -> float:
        return dwell_accuracy(self.dwell)

    def can_resume(self) -> bool:
        return self.phase == PHASE_REST and self.rest_seconds_left <= 0

    def start_set(self) -> None:
        if self.phase == PHASE_REST and not self.can_resume():
            raise RuntimeError("rest period is not over yet")
        if self.phase not in (PHASE_INTRO, PHASE_REST):
            raise RuntimeError(f"cannot start a set from phase {self.phase}")

        self.phase = PHASE_RUNNING
        self.seconds_left = self.config.set_duration_sec
        self.objects = spawn_objects(self.level, self.assets, self.config, self.rng)
        self.smoother.reset()
        self.latest_sample = None

        self.hint_active = True
        self._hint_timer = self.scheduler.call_later(self.config.hint_duration_sec * 1000, self._on_hint_end)
        self._countdown_timer = self.scheduler.call_every(1000, self._on_countdown)
        self._subscription = self.gaze_channel.subscribe(self._on_gaze)

    def tick(self, dt_ms: float) -> None:
        if self.phase != PHASE_RUNNING:
            return
        step_objects(self.objects, self.config)
        point = self.smoother.update(self.latest_sample)
        target = find_target(self.objects)
        width, height = self.area.width, self.area.height
        self.dwell = dwell_step(
            self.dwell,
            dt_ms,
            point,
            target,
            width=width,
            height=height,
            tolerance=self.config.hit_tolerance,
        )
        # в поток попадают и точки мимо цели
        if (
            point is not None
            and target is not None
            and in_bounds(point, width, height)
            and len(self.gaze_stream) < self.config.gaze_stream_limit
            and self.rng.random() < self.config.gaze_stream_sample_rate
        ):
            self.gaze_stream.append({"x": round(point.x), "y": round(point.y)})

    def _on_gaze(self, sample: GazeSample) -> None:
        if self.phase == PHASE_RUNNING and not self._finishing:
            self.latest_sample = sample

    def _on_hint_end(self, now_ms: int) -> None:
        self.hint_active = False
        self._hint_timer = None

    def _on_countdown(self, now_ms: int) -> None:
        if self.phase != PHASE_RUNNING:
            return
        self.seconds_left = max(0, self.seconds_left - 1)
        if self.seconds_left == 0:
            self._complete_set()

    def _complete_set(self) -> None:
        self._stop_gaze()
        self._cancel_set_timers()
        self.sets_completed += 1

        if self.current_set < self.config.total_sets:
            self.phase = PHASE_REST
            self.current_set += 1
            self.rest_seconds_left = self.config.rest_duration_sec
            if self.rest_seconds_left > 0:
                self._rest_timer = self.scheduler.call_every(1000, self._on_rest_tick)
            return
        self.finish_session()

    def _on_rest_tick(self, now_ms: int) -> None:
        self.rest_seconds_left = max(0, self.rest_seconds_left - 1)
        if self.rest_seconds_left == 0:
            self.scheduler.cancel(self._rest_timer)
            self._rest_timer = None

    def finish_session(self) -> Optional[AttentionMetrics]:
        if self._finishing or self._finished:
            return None
        self._finishing = True
        # Сначала отключаем взгляд: после начала финиша сэмплы не обрабатываются.
        self.teardown()
        self.phase = PHASE_RESULTS
        try:
            accuracy = dwell_accuracy(self.dwell)
            new_level = next_level(
                accuracy,
                self.level,
                threshold=self.level_cfg.attention_up_accuracy,
                max_level=self.level_cfg.max_level,
            )
            promoted = new_level != self.level
            level_saved = promoted and self._store_level(new_level)
            metrics = AttentionMetrics(
                group=self.config.group,
                task_duration=self.dwell.elapsed_ms / 1000,
                accuracy=accuracy,
                gaze_stability=self.smoother.stability,
                level=self.level,
                sets_completed=self.sets_completed,
                promoted=promoted,
                new_level=new_level if promoted else None,
                level_saved=level_saved,
            )
            logger.info(
                "Attention session for %s done: level=%s accuracy=%.2f sets=%s",
                self.user.user_id,
                self.level,
                accuracy,
                self.sets_completed,
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
        self._stop_gaze()
        self._cancel_set_timers()
        self.scheduler.cancel(self._rest_timer)
        self._rest_timer = None

    def _stop_gaze(self) -> None:
        self.gaze_channel.unsubscribe(self._subscription)
        self._subscription = None
        self.latest_sample = None

    def _cancel_set_timers(self) -> None:
        self.scheduler.cancel(self._countdown_timer)
        self.scheduler.cancel(self._hint_timer)
        self._countdown_timer = None
        self._hint_timer = None
        self.hint_active = False

    def _store_level(self, new_level: int) -> bool:
        if self.profile_store is None:
            return False
        try:
            self.profile_store.set_level(self.user.user_id, self.config.profile_key, new_level)
        except Exception:
            logger.exception("Level up failed for user %s (%s -> %s)", self.user.user_id, self.level, new_level)
            return False
        logger.info("User %s promoted to attention level %s", self.user.user_id, new_level)
        return True

    def _store_metrics(self, metrics: AttentionMetrics) -> None:
        if self.session_log is None:
            return
        try:
            entry = build_entry(
                RECORD_ATTENTION,
                self.user,
                metrics.to_record(),
                extra={"gaze_stream": list(self.gaze_stream)},
            )
            self.session_log.write(entry)
        except Exception:
            logger.exception("Failed to save attention session for user %s", self.user.user_id)
