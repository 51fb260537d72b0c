from data.models import GazeSample
from game.gaze.channel import GazeChannel

SAMPLE = GazeSample(x=1.0, y=2.0, timestamp=0)


class TestGazeChannel:
    def test_publish_without_subscriber(self):
        assert GazeChannel().publish(SAMPLE) is False

    def test_single_subscriber_receives(self):
        channel = GazeChannel()
        received = []
        channel.subscribe(received.append)
        assert channel.publish(SAMPLE) is True
        assert received == [SAMPLE]

    def test_new_subscription_detaches_old(self):
        channel = GazeChannel()
        old, new = [], []
        first = channel.subscribe(old.append)
        channel.subscribe(new.append)
        channel.publish(SAMPLE)
        assert first.active is False
        assert old == []
        assert new == [SAMPLE]

    def test_stale_unsubscribe_keeps_current(self):
        channel = GazeChannel()
        received = []
        first = channel.subscribe(lambda s: None)
        channel.subscribe(received.append)
        channel.unsubscribe(first)
        assert channel.has_subscriber
        channel.publish(SAMPLE)
        assert received == [SAMPLE]

    def test_unsubscribe(self):
        channel = GazeChannel()
        received = []
        sub = channel.subscribe(received.append)
        channel.unsubscribe(sub)
        channel.unsubscribe(None)
        assert not channel.has_subscriber
        assert channel.publish(SAMPLE) is False
        assert received == []
