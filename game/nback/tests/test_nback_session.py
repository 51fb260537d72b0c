"""NBackSession driven by a TickScheduler with a fixed sequence."""
import logging
import random

import pytest

from config.settings import NBackConfig
from data.errors import StoreError
from data.models import (
    NBackSequence,
    OUTCOME_CORRECT_REJECTION,
    OUTCOME_FALSE_ALARM,
    OUTCOME_HIT,
    OUTCOME_MISS,
    UserRef,
)
from data.profile_store import ProfileStore
from data.session_log import MemorySessionLog
from game.nback.session import PHASE_INTRO, PHASE_RESULTS, PHASE_RUNNING, NBackSession
from game.scheduler import TickScheduler

STEP = 2000
SYMBOLS = ("A", "B", "A", "B", "C")  # level 2: matches at 2 and 3


class FailingProfileStore:
    def set_level(self, user_id, task_key, level):
        raise StoreError("disk full")


class FailingSessionLog:
    def write(self, entry):
        raise StoreError("offline")


def make_session(scheduler, level=2, **kwargs):
    completed = []
    session = NBackSession(
        user=UserRef(user_id="u1", group="G4"),
        level=level,
        scheduler=scheduler,
        config=NBackConfig(sequence_length=len(SYMBOLS), stimulus_duration_ms=STEP),
        rng=random.Random(0),
        on_session_complete=completed.append,
        **kwargs,
    )
    return session, completed


def start_fixed(session):
    session.start()
    session.sequence = NBackSequence(symbols=SYMBOLS, level=session.level, match_count=2)


class TestNBackSessionFlow:
    def test_starts_in_intro(self):
        session, _ = make_session(TickScheduler())
        assert session.phase == PHASE_INTRO
        assert session.current_symbol is None

    def test_level_outside_range_rejected(self):
        with pytest.raises(ValueError):
            make_session(TickScheduler(), level=4)

    def test_stimulus_advances_on_timer(self):
        scheduler = TickScheduler()
        session, _ = make_session(scheduler)
        start_fixed(session)
        assert session.phase == PHASE_RUNNING
        assert session.current_symbol == "A"
        scheduler.advance(STEP - 1)
        assert session.current_index == 0
        scheduler.advance(STEP)
        assert session.current_index == 1
        assert session.current_symbol == "B"

    def test_all_hits_promotes(self, tmp_path):
        store = ProfileStore(str(tmp_path / "profiles.json"))
        store.create_user("u1", "G4")
        log = MemorySessionLog()
        scheduler = TickScheduler()
        session, completed = make_session(scheduler, profile_store=store, session_log=log)
        start_fixed(session)

        scheduler.advance(2 * STEP)
        assert session.respond() == OUTCOME_HIT
        scheduler.advance(3 * STEP)
        assert session.respond() == OUTCOME_HIT
        scheduler.advance(5 * STEP)

        assert session.phase == PHASE_RESULTS
        metrics = session.metrics
        assert metrics.hits == 2
        assert metrics.misses == 0
        assert metrics.false_alarms == 0
        assert metrics.accuracy == pytest.approx(1.0)
        assert metrics.promoted is True
        assert metrics.new_level == 3
        assert metrics.level_saved is True
        assert store.get_level("u1", "g4_nback") == 3
        assert completed == [metrics]
        assert len(log.entries) == 1
        record = log.entries[0].to_dict()
        assert record["kind"] == "nback"
        assert record["hits"] == 2
        assert record["user_id"] == "u1"

    def test_silence_counts_misses(self):
        scheduler = TickScheduler()
        session, completed = make_session(scheduler)
        start_fixed(session)
        scheduler.advance(5 * STEP)

        assert [t.outcome for t in session.trials] == [
            OUTCOME_CORRECT_REJECTION,
            OUTCOME_CORRECT_REJECTION,
            OUTCOME_MISS,
            OUTCOME_MISS,
            OUTCOME_CORRECT_REJECTION,
        ]
        assert session.metrics.misses == 2
        assert session.metrics.accuracy == 0.0
        assert session.metrics.promoted is False
        assert len(completed) == 1

    def test_first_response_wins(self):
        scheduler = TickScheduler()
        session, _ = make_session(scheduler)
        start_fixed(session)
        scheduler.advance(2 * STEP)
        assert session.respond() == OUTCOME_HIT
        assert session.respond() is None
        assert session.hits == 1

    def test_response_before_level_is_false_alarm(self):
        scheduler = TickScheduler()
        session, _ = make_session(scheduler)
        start_fixed(session)
        assert session.respond() == OUTCOME_FALSE_ALARM
        assert session.false_alarms == 1

    def test_respond_ignored_outside_running(self):
        session, _ = make_session(TickScheduler())
        assert session.respond() is None

    def test_timer_cancelled_after_results(self):
        scheduler = TickScheduler()
        session, _ = make_session(scheduler)
        start_fixed(session)
        scheduler.advance(5 * STEP)
        assert scheduler.pending() == 0


class TestNBackSessionFinish:
    def test_second_finish_is_noop(self):
        scheduler = TickScheduler()
        session, completed = make_session(scheduler)
        start_fixed(session)
        first = session.finish_session()
        assert first is not None
        assert session.finish_session() is None
        assert completed == [first]

    def test_finish_from_callback_is_noop(self):
        scheduler = TickScheduler()
        nested = []
        session, _ = make_session(scheduler)
        session.on_session_complete = lambda m: nested.append(session.finish_session())
        start_fixed(session)
        scheduler.advance(5 * STEP)
        assert nested == [None]

    def test_level_store_failure_is_logged(self, caplog):
        scheduler = TickScheduler()
        session, completed = make_session(scheduler, profile_store=FailingProfileStore())
        start_fixed(session)
        scheduler.advance(2 * STEP)
        session.respond()
        scheduler.advance(3 * STEP)
        session.respond()
        with caplog.at_level(logging.ERROR):
            scheduler.advance(5 * STEP)
        assert session.metrics.accuracy == pytest.approx(1.0)
        assert session.metrics.promoted is True
        assert session.metrics.new_level == 3
        assert session.metrics.level_saved is False
        assert len(completed) == 1
        assert "Level up failed" in caplog.text

    def test_session_log_failure_still_completes(self, caplog):
        scheduler = TickScheduler()
        session, completed = make_session(scheduler, session_log=FailingSessionLog())
        start_fixed(session)
        with caplog.at_level(logging.ERROR):
            metrics = session.finish_session()
        assert metrics is not None
        assert completed == [metrics]
        assert "Failed to save N-back session" in caplog.text

    def test_no_matches_gives_zero_accuracy(self):
        scheduler = TickScheduler()
        session, _ = make_session(scheduler, level=1)
        session.start()
        session.sequence = NBackSequence(symbols=("A", "B", "C", "D", "H"), level=1, match_count=0)
        scheduler.advance(5 * STEP)
        assert session.metrics.possible_matches == 0
        assert session.metrics.accuracy == 0.0
