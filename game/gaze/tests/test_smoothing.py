import pygame
import pytest

from config.settings import GazeConfig
from data.models import GazePoint, GazeSample
from game.gaze.smoothing import (
    GazeSmoother,
    in_bounds,
    initial_state,
    smooth_step,
    stability_ratio,
)

AREA = pygame.Rect(100, 50, 800, 500)
CFG = GazeConfig()


def sample(x, y, t=0):
    return GazeSample(x=x, y=y, timestamp=t)


class TestSmoothStep:
    def test_starts_at_area_centre(self):
        assert initial_state(AREA).smoothed == GazePoint(400, 250)

    def test_first_step_lerps_toward_area_coordinates(self):
        state = smooth_step(initial_state(AREA), sample(600, 350), AREA, CFG)
        # page (600, 350) -> area (500, 300)
        assert state.smoothed.x == pytest.approx(435.0)
        assert state.smoothed.y == pytest.approx(267.5)

    def test_window_is_fifo(self):
        state = initial_state(AREA)
        for i in range(6):
            state = smooth_step(state, sample(100 + i, 50), AREA, CFG)
        assert len(state.window) == CFG.window_size
        assert [p.x for p in state.window] == [2, 3, 4, 5]

    def test_small_moves_pass_during_startup(self):
        state = initial_state(AREA)
        # area target (404, 250): every step moves < deadzone
        state = smooth_step(state, sample(504, 300), AREA, CFG)
        assert state.smoothed.x == pytest.approx(401.4)
        state = smooth_step(state, sample(504, 300), AREA, CFG)
        assert state.smoothed.x == pytest.approx(402.31)
        held = smooth_step(state, sample(504, 300), AREA, CFG)
        assert held.smoothed == state.smoothed
        assert held.held_ticks == 1
        assert held.gated_ticks == 1

    def test_constant_input_converges_then_stops(self):
        target = GazePoint(700, 100)
        state = initial_state(AREA)
        history = []
        for _ in range(200):
            state = smooth_step(state, sample(target.x + AREA.left, target.y + AREA.top), AREA, CFG)
            history.append(state.smoothed)

        last = history[-1]
        distance = pygame.math.Vector2(last.x, last.y).distance_to((target.x, target.y))
        assert distance <= CFG.deadzone / CFG.lerp_factor + 1e-9
        assert all(p == last for p in history[-50:])

    def test_stability_ratio(self):
        state = initial_state(AREA)
        assert stability_ratio(state) == 0.0
        for _ in range(100):
            state = smooth_step(state, sample(500, 300), AREA, CFG)
        assert 0.0 < stability_ratio(state) <= 1.0


class TestInBounds:
    def test_edges_are_inclusive(self):
        assert in_bounds(GazePoint(0, 0), 800, 500)
        assert in_bounds(GazePoint(800, 500), 800, 500)

    def test_outside(self):
        assert not in_bounds(GazePoint(800.1, 10), 800, 500)
        assert not in_bounds(GazePoint(10, -0.1), 800, 500)


class TestGazeSmoother:
    def test_no_point_before_first_sample(self):
        smoother = GazeSmoother(AREA)
        assert smoother.update(None) is None
        assert smoother.visible is False

    def test_dropout_holds_last_point(self):
        smoother = GazeSmoother(AREA)
        point = smoother.update(sample(500, 300))
        assert smoother.update(None) == point
        assert smoother.visible is True

    def test_point_leaving_area_is_invisible(self):
        smoother = GazeSmoother(AREA)
        for _ in range(50):
            smoother.update(sample(AREA.right + 300, AREA.top + 10))
        assert smoother.point.x > AREA.width
        assert smoother.visible is False

    def test_reset_recentres_but_keeps_stability(self):
        smoother = GazeSmoother(AREA)
        for _ in range(60):
            smoother.update(sample(200, 100))
        stability = smoother.stability
        smoother.reset()
        assert smoother.point is None
        assert smoother.state.window == ()
        assert smoother.state.smoothed == GazePoint(400, 250)
        assert smoother.stability == stability
