from typing import Optional

import pygame

from config.settings import AttentionConfig, GazeConfig, LevelConfig, NBackConfig, WindowConfig
from data.models import UserRef
from data.profile_store import ProfileStore
from data.session_log import SessionLog
from game.attention.objects import AssetProvider, StaticAssetProvider
from game.attention.session import PHASE_INTRO as ATTENTION_INTRO
from game.attention.session import PHASE_REST, AttentionSession
from game.gaze.channel import GazeChannel
from game.input import ACTION_MATCH, ACTION_START, InputManager, MouseGazeSource
from game.nback.session import PHASE_INTRO as NBACK_INTRO
from game.nback.session import PHASE_RUNNING, NBackSession
from game.scheduler import TickScheduler
from game.ui import GameUI


TASK_NBACK = "nback"
TASK_ATTENTION = "attention"


class TrainingApp:
    """
    Окно pygame для одной тренировочной сессии.

    Каждый кадр:
    1) события -> InputManager
    2) scheduler.advance(now_ms): таймеры сессии
    3) session.tick(dt_ms): движение, взгляд, накопление времени на цели
    4) отрисовка
    """

    def __init__(
        self,
        window: WindowConfig,
        task: str,
        user: UserRef,
        level: int,
        profile_store: Optional[ProfileStore] = None,
        session_log: Optional[SessionLog] = None,
        assets: Optional[AssetProvider] = None,
        nback_cfg: NBackConfig = NBackConfig(),
        attention_cfg: AttentionConfig = AttentionConfig(),
        gaze_cfg: GazeConfig = GazeConfig(),
        level_cfg: LevelConfig = LevelConfig(),
    ) -> None:
        if task not in (TASK_NBACK, TASK_ATTENTION):
            raise ValueError(f"unknown task: {task}")
        pygame.init()
        self.screen = pygame.display.set_mode((window.width, window.height))
        pygame.display.set_caption(window.title)
        self.clock = pygame.time.Clock()
        self.ui = GameUI(self.screen)
        self.window = window
        self.task = task
        self.input = InputManager()
        self.scheduler = TickScheduler(now_ms=pygame.time.get_ticks())
        self.gaze_channel = GazeChannel()
        self.gaze_source = MouseGazeSource()
        self.running = True
        self.result = None

        if task == TASK_NBACK:
            self.session = NBackSession(
                user=user,
                level=level,
                scheduler=self.scheduler,
                profile_store=profile_store,
                session_log=session_log,
                config=nback_cfg,
                level_cfg=level_cfg,
                on_session_complete=self._on_complete,
            )
        else:
            self.session = AttentionSession(
                user=user,
                level=level,
                scheduler=self.scheduler,
                gaze_channel=self.gaze_channel,
                assets=assets or StaticAssetProvider(attention_cfg.placeholder_asset, []),
                area=self.ui.task_area(attention_cfg.bounds_width, attention_cfg.bounds_height),
                profile_store=profile_store,
                session_log=session_log,
                config=attention_cfg,
                gaze_cfg=gaze_cfg,
                level_cfg=level_cfg,
                on_session_complete=self._on_complete,
            )
            self.gaze_source.start(self.gaze_channel)

    def run(self):
        last_ms = pygame.time.get_ticks()
        try:
            while self.running:
                self.clock.tick(self.window.fps)
                now_ms = pygame.time.get_ticks()
                dt_ms = now_ms - last_ms
                last_ms = now_ms

                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        self.running = False
                    if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                        self.running = False
                    self.input.process_pygame_event(event)

                self._handle_action(self.input.poll_action())
                self.scheduler.advance(now_ms)
                if self.task == TASK_ATTENTION:
                    self.gaze_source.poll(now_ms)
                    self.session.tick(dt_ms)
                self._render()
        finally:
            self.session.teardown()
            self.gaze_source.stop()
            pygame.quit()
        return self.result

    def _on_complete(self, metrics) -> None:
        self.result = metrics

    def _handle_action(self, action: Optional[str]) -> None:
        if action is None:
            return
        phase = self.session.phase
        if self.task == TASK_NBACK:
            if action == ACTION_START and phase == NBACK_INTRO:
                self.session.start()
            elif action == ACTION_MATCH and phase == PHASE_RUNNING:
                self.session.respond()
            return
        if action == ACTION_START and (phase == ATTENTION_INTRO or self.session.can_resume()):
            self.session.start_set()

    def _render(self) -> None:
        self.ui.clear()
        if self.task == TASK_NBACK:
            self._render_nback()
        else:
            self._render_attention()
        pygame.display.flip()

    def _render_nback(self) -> None:
        s = self.session
        self.ui.draw_title(f"{s.level}-back")
        if s.phase == NBACK_INTRO:
            self.ui.draw_lines([
                f"Нажимай ПРОБЕЛ, если буква совпадает с той, что была {s.level} шага назад.",
                "ENTER — начать, ESC — выход.",
            ])
            return
        if s.phase == PHASE_RUNNING:
            self.ui.draw_status([
                f"Стимул {s.current_index + 1}/{len(s.sequence)}",
                f"Попадания: {s.hits}",
                f"Ложные: {s.false_alarms}",
            ])
            self.ui.draw_stimulus(s.current_symbol, s.feedback)
            return
        self._render_results()

    def _render_attention(self) -> None:
        s = self.session
        self.ui.draw_title("Следи за котом")
        if s.phase == ATTENTION_INTRO:
            self.ui.draw_lines([
                "Смотри на подсвеченную цель и не отводи взгляд.",
                f"{s.config.total_sets} подхода по {s.config.set_duration_sec} с.",
                "ENTER — начать, ESC — выход.",
            ])
            return
        if s.phase == PHASE_REST:
            lines = [f"Отдых: {s.rest_seconds_left} с", f"Следующий подход: {s.current_set}/{s.config.total_sets}"]
            if s.can_resume():
                lines.append("ENTER — продолжить")
            self.ui.draw_lines(lines)
            return
        if s.metrics is not None:
            self._render_results()
            return
        self.ui.draw_status([
            f"Подход {s.current_set}/{s.config.total_sets}",
            f"Осталось: {s.seconds_left} с",
            f"Точность: {s.accuracy:.0%}",
        ])
        self.ui.draw_field(s.area, s.objects, s.config.object_size, s.smoother.point, s.locked, s.hint_active)

    def _render_results(self) -> None:
        metrics = self.session.metrics
        if metrics is None:
            return
        lines = [f"Точность: {metrics.accuracy:.0%}"]
        if metrics.promoted:
            lines.append(f"Новый уровень: {metrics.new_level}")
            if not metrics.level_saved:
                lines.append("Уровень не сохранён, попробуй позже")
        lines.append("ESC — выход")
        self.ui.draw_lines(lines)
