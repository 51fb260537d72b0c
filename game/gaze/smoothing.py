from dataclasses import dataclass
from typing import Optional, Tuple

import pygame

from config.settings import GazeConfig
from data.models import GazePoint, GazeSample


@dataclass(frozen=True)
class SmoothingState:
    smoothed: GazePoint
    window: Tuple[GazePoint, ...] = ()
    held_ticks: int = 0   # тики, когда deadzone удержал точку на месте
    gated_ticks: int = 0  # тики после стартового обхода deadzone


def initial_state(area: pygame.Rect) -> SmoothingState:
    return SmoothingState(smoothed=GazePoint(area.width / 2, area.height / 2))


def to_area(sample: GazeSample, area: pygame.Rect) -> GazePoint:
    return GazePoint(sample.x - area.left, sample.y - area.top)


def window_mean(window: Tuple[GazePoint, ...]) -> GazePoint:
    n = len(window)
    return GazePoint(sum(p.x for p in window) / n, sum(p.y for p in window) / n)


def smooth_step(
    state: SmoothingState,
    sample: GazeSample,
    area: pygame.Rect,
    cfg: GazeConfig = GazeConfig(),
) -> SmoothingState:
    """
    Один тик сглаживания (вызывается раз в кадр, а не на каждый сэмпл).

    1) переводим сэмпл в координаты области задачи
    2) кладём в скользящее окно (FIFO, cfg.window_size)
    3) среднее по окну
    4) LERP от текущей точки к среднему
    5) двигаем точку, только если сдвиг больше deadzone
       (пока в окне меньше cfg.startup_samples сэмплов, двигаем всегда)
    """
    window = (state.window + (to_area(sample, area),))[-cfg.window_size:]
    avg = window_mean(window)

    current = pygame.math.Vector2(state.smoothed.x, state.smoothed.y)
    target = current.lerp(pygame.math.Vector2(avg.x, avg.y), cfg.lerp_factor)
    moved = current.distance_to(target)

    if len(window) < cfg.startup_samples:
        return SmoothingState(
            smoothed=GazePoint(target.x, target.y),
            window=window,
            held_ticks=state.held_ticks,
            gated_ticks=state.gated_ticks,
        )
    if moved > cfg.deadzone:
        return SmoothingState(
            smoothed=GazePoint(target.x, target.y),
            window=window,
            held_ticks=state.held_ticks,
            gated_ticks=state.gated_ticks + 1,
        )
    return SmoothingState(
        smoothed=state.smoothed,
        window=window,
        held_ticks=state.held_ticks + 1,
        gated_ticks=state.gated_ticks + 1,
    )


def in_bounds(point: GazePoint, width: float, height: float) -> bool:
    return 0 <= point.x <= width and 0 <= point.y <= height


def stability_ratio(state: SmoothingState) -> float:
    if state.gated_ticks == 0:
        return 0.0
    return state.held_ticks / state.gated_ticks


class GazeSmoother:
    """Обёртка над smooth_step для тех, кому удобнее объект с состоянием."""

    def __init__(self, area: pygame.Rect, cfg: GazeConfig = GazeConfig()) -> None:
        self.area = pygame.Rect(area)
        self.cfg = cfg
        self.state = initial_state(self.area)
        self._has_input = False

    def reset(self) -> None:
        # счётчики стабильности копятся за всю сессию, окно и точка сбрасываются на каждый подход
        self.state = SmoothingState(
            smoothed=initial_state(self.area).smoothed,
            held_ticks=self.state.held_ticks,
            gated_ticks=self.state.gated_ticks,
        )
        self._has_input = False

    def update(self, sample: Optional[GazeSample]) -> Optional[GazePoint]:
        if sample is not None:
            self.state = smooth_step(self.state, sample, self.area, self.cfg)
            self._has_input = True
        return self.point

    @property
    def point(self) -> Optional[GazePoint]:
        if not self._has_input:
            return None
        return self.state.smoothed

    @property
    def visible(self) -> bool:
        point = self.point
        return point is not None and in_bounds(point, self.area.width, self.area.height)

    @property
    def stability(self) -> float:
        return stability_ratio(self.state)
