import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple


TimerCallback = Callable[[int], None]


@dataclass
class TimerHandle:
    timer_id: int
    due_ms: int
    callback: TimerCallback = field(repr=False)
    interval_ms: Optional[int] = None
    cancelled: bool = False

    @property
    def repeating(self) -> bool:
        return self.interval_ms is not None


class TickScheduler:
    """
    Однопоточный планировщик таймеров для игрового цикла.

    Идея:
    - главный цикл каждый кадр вызывает advance(now_ms)
    - всё "ожидание" (смена стимула, обратный отсчёт, отдых) — это таймеры здесь
    - сессия хранит свои TimerHandle и отменяет их при смене состояния
    - колбэк получает время, на которое таймер был запланирован
    """

    def __init__(self, now_ms: int = 0) -> None:
        self._now_ms = now_ms
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._ids = itertools.count(1)

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def call_later(self, delay_ms: int, callback: TimerCallback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        handle = TimerHandle(timer_id=next(self._ids), due_ms=self._now_ms + delay_ms, callback=callback)
        self._push(handle)
        return handle

    def call_every(self, interval_ms: int, callback: TimerCallback) -> TimerHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        handle = TimerHandle(
            timer_id=next(self._ids),
            due_ms=self._now_ms + interval_ms,
            callback=callback,
            interval_ms=interval_ms,
        )
        self._push(handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    def cancel_all(self) -> None:
        for _, _, handle in self._queue:
            handle.cancelled = True
        self._queue.clear()

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, now_ms: int) -> int:
        """Запускает все таймеры со сроком <= now_ms по порядку. Возвращает число вызовов."""
        if now_ms < self._now_ms:
            raise ValueError(f"time went backwards: {now_ms} < {self._now_ms}")
        fired = 0
        while self._queue and self._queue[0][0] <= now_ms:
            due_ms, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now_ms = due_ms
            if handle.repeating:
                handle.due_ms = due_ms + handle.interval_ms
                self._push(handle)
            handle.callback(due_ms)
            fired += 1
        self._now_ms = now_ms
        return fired

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due_ms, handle.timer_id, handle))
