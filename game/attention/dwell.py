from dataclasses import dataclass
from typing import Optional

import pygame

from data.models import GazePoint, MovingObject
from game.gaze.smoothing import in_bounds


@dataclass(frozen=True)
class DwellState:
    elapsed_ms: float = 0.0
    dwell_ms: float = 0.0
    locked: bool = False


def dwell_step(
    state: DwellState,
    dt_ms: float,
    point: Optional[GazePoint],
    target: Optional[MovingObject],
    width: float,
    height: float,
    tolerance: float,
) -> DwellState:
    """
    Один тик накопления времени на цели.

    elapsed растёт всегда; dwell только когда точка взгляда в поле
    и ближе tolerance к центру цели. Поэтому dwell <= elapsed на любом тике.
    """
    if dt_ms < 0:
        raise ValueError(f"dt_ms must be >= 0, got {dt_ms}")
    elapsed = state.elapsed_ms + dt_ms
    if point is None or target is None or not in_bounds(point, width, height):
        return DwellState(elapsed_ms=elapsed, dwell_ms=state.dwell_ms, locked=False)

    distance = pygame.math.Vector2(point.x, point.y).distance_to((target.x, target.y))
    if distance < tolerance:
        return DwellState(elapsed_ms=elapsed, dwell_ms=state.dwell_ms + dt_ms, locked=True)
    return DwellState(elapsed_ms=elapsed, dwell_ms=state.dwell_ms, locked=False)


def dwell_accuracy(state: DwellState) -> float:
    if state.elapsed_ms <= 0:
        return 0.0
    return min(1.0, state.dwell_ms / state.elapsed_ms)
