from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from data.models import GazeSample


GazeHandler = Callable[[GazeSample], None]


class GazeSource(Protocol):
    """Источник взгляда (веб-камера, мышь, запись). Сам пишет сэмплы в канал."""

    def start(self, channel: "GazeChannel") -> None:
        ...

    def stop(self) -> None:
        ...


@dataclass
class GazeSubscription:
    subscription_id: int
    handler: GazeHandler = field(repr=False)
    active: bool = True


class GazeChannel:
    """
    Канал с одним подписчиком.

    Новая подписка сначала отключает старую, так что после смены подхода
    старый обработчик уже ничего не получит.
    """

    def __init__(self) -> None:
        self._active: Optional[GazeSubscription] = None
        self._next_id = 1

    def subscribe(self, handler: GazeHandler) -> GazeSubscription:
        if self._active is not None:
            self._active.active = False
        subscription = GazeSubscription(subscription_id=self._next_id, handler=handler)
        self._next_id += 1
        self._active = subscription
        return subscription

    def unsubscribe(self, subscription: Optional[GazeSubscription]) -> None:
        if subscription is None:
            return
        subscription.active = False
        if self._active is subscription:
            self._active = None

    @property
    def has_subscriber(self) -> bool:
        return self._active is not None

    def publish(self, sample: GazeSample) -> bool:
        subscription = self._active
        if subscription is None or not subscription.active:
            return False
        subscription.handler(sample)
        return True
