import random
from typing import Optional

import pygame

from data.models import GazeSample
from game.gaze.channel import GazeChannel


ACTION_MATCH = "MATCH"
ACTION_START = "START"


class InputManager:
    """
    Прослойка между pygame и логикой сессий.

    Идея:
    - pygame шлёт события (event)
    - мы смотрим только на KEYDOWN
    - нужная клавиша -> действие (ACTION_MATCH / ACTION_START)
    - приложение в каждом кадре забирает действие через poll_action()
    """

    def __init__(self):
        self._last_action: Optional[str] = None
        self.key_to_action = {
            pygame.K_SPACE: ACTION_MATCH,
            pygame.K_m: ACTION_MATCH,
            pygame.K_RETURN: ACTION_START,
        }

    def process_pygame_event(self, event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        if event.key in self.key_to_action:
            # несколько нажатий за кадр: остаётся последнее
            self._last_action = self.key_to_action[event.key]

    def poll_action(self) -> Optional[str]:
        action = self._last_action
        self._last_action = None
        return action

    def reset(self) -> None:
        self._last_action = None


class MouseGazeSource:
    """
    Заглушка веб-камеры: позиция мыши + шум как поток взгляда.

    Пока источник запущен, poll(now_ms) раз в кадр публикует сэмпл в канал.
    Шум нужен, чтобы сглаживание и deadzone работали как на настоящих данных.
    """

    def __init__(self, jitter_px: float = 6.0, rng: Optional[random.Random] = None) -> None:
        self.jitter_px = jitter_px
        self.rng = rng or random.Random()
        self._channel: Optional[GazeChannel] = None

    @property
    def running(self) -> bool:
        return self._channel is not None

    def start(self, channel: GazeChannel) -> None:
        self._channel = channel

    def stop(self) -> None:
        self._channel = None

    def poll(self, now_ms: int) -> bool:
        if self._channel is None or not pygame.mouse.get_focused():
            return False
        x, y = pygame.mouse.get_pos()
        sample = GazeSample(
            x=x + self.rng.gauss(0.0, self.jitter_px),
            y=y + self.rng.gauss(0.0, self.jitter_px),
            timestamp=now_ms,
        )
        return self._channel.publish(sample)
