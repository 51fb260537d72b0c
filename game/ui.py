from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import pygame

from data.models import GazePoint, MovingObject, OUTCOME_HIT


@dataclass(frozen=True)
class UiTheme:
    bg: Tuple[int, int, int] = (250, 244, 236)
    panel: Tuple[int, int, int] = (255, 251, 245)
    border: Tuple[int, int, int] = (214, 190, 160)
    text: Tuple[int, int, int] = (60, 44, 32)
    accent: Tuple[int, int, int] = (232, 140, 60)
    alert: Tuple[int, int, int] = (210, 70, 60)
    target: Tuple[int, int, int] = (250, 200, 70)
    distractor: Tuple[int, int, int] = (170, 150, 130)
    gaze: Tuple[int, int, int] = (60, 140, 230)


class GameUI:
    """Рисование обеих задач. Логики здесь нет: только то, что лежит в сессиях."""

    def __init__(self, screen: pygame.Surface) -> None:
        self.screen = screen
        self.w, self.h = screen.get_size()
        self.theme = UiTheme()
        self.ui_scale = max(0.75, min(1.15, min(self.w / 1600.0, self.h / 900.0)))
        self.font_huge = self._make_font(max(72, int(140 * self.ui_scale)), bold=True)
        self.font_big = self._make_font(max(30, int(40 * self.ui_scale)), bold=True)
        self.font_mid = self._make_font(max(22, int(28 * self.ui_scale)))
        self.font_small = self._make_font(max(16, int(21 * self.ui_scale)))

    def task_area(self, width: int, height: int) -> pygame.Rect:
        # Поле задачи по центру окна, под заголовком.
        rect = pygame.Rect(0, 0, width, height)
        rect.center = (self.w // 2, self.h // 2 + 30)
        return rect

    def clear(self) -> None:
        self.screen.fill(self.theme.bg)

    def draw_title(self, text: str) -> None:
        main = self.font_big.render(text, True, self.theme.accent)
        rect = main.get_rect(center=(self.w // 2, 48))
        self.screen.blit(main, rect)

    def draw_status(self, items: Sequence[str]) -> None:
        x = 24
        for item in items:
            surf = self.font_small.render(item, True, self.theme.text)
            self.screen.blit(surf, (x, 90))
            x += surf.get_width() + 28

    def draw_lines(self, lines: List[str], top: Optional[int] = None) -> None:
        yy = top if top is not None else self.h // 3
        for line in lines:
            surf = self.font_mid.render(line, True, self.theme.text)
            self.screen.blit(surf, surf.get_rect(center=(self.w // 2, yy)))
            yy += 36

    def draw_stimulus(self, symbol: Optional[str], feedback: Optional[str]) -> None:
        box = pygame.Rect(0, 0, 260, 260)
        box.center = (self.w // 2, self.h // 2 + 20)
        border = self.theme.border
        if feedback is not None:
            border = self.theme.accent if feedback == OUTCOME_HIT else self.theme.alert
        pygame.draw.rect(self.screen, self.theme.panel, box, border_radius=16)
        pygame.draw.rect(self.screen, border, box, width=4, border_radius=16)
        if symbol:
            surf = self.font_huge.render(symbol, True, self.theme.text)
            self.screen.blit(surf, surf.get_rect(center=box.center))

    def draw_field(
        self,
        area: pygame.Rect,
        objects: Sequence[MovingObject],
        object_size: int,
        gaze: Optional[GazePoint],
        locked: bool,
        hint: bool,
    ) -> None:
        pygame.draw.rect(self.screen, self.theme.panel, area, border_radius=12)
        pygame.draw.rect(self.screen, self.theme.border, area, width=2, border_radius=12)

        radius = object_size // 2
        for obj in objects:
            center = (int(area.left + obj.x), int(area.top + obj.y))
            color = self.theme.target if obj.is_target else self.theme.distractor
            pygame.draw.circle(self.screen, color, center, radius)
            if obj.is_target and (hint or locked):
                ring = self.theme.accent if locked else self.theme.alert
                pygame.draw.circle(self.screen, ring, center, radius + 6, width=4)

        if gaze is not None and 0 <= gaze.x <= area.width and 0 <= gaze.y <= area.height:
            pygame.draw.circle(self.screen, self.theme.gaze, (int(area.left + gaze.x), int(area.top + gaze.y)), 10, width=3)

    def _make_font(self, size: int, bold: bool = False) -> pygame.font.Font:
        for name in ("helveticaneue", "avenir", "segoeui", "arial"):
            path = pygame.font.match_font(name)
            if path:
                font = pygame.font.Font(path, size)
                if bold:
                    font.set_bold(True)
                return font
        return pygame.font.SysFont(None, size, bold=bold)
