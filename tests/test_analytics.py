import asyncio

from screenflow.client import AnalyticsBuffer


class Sink:
    def __init__(self, failures=0):
        self.failures = failures
        self.batches = []

    def track_events(self, events):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("sink down")
        self.batches.append([e["event"] for e in events])
        return {"success": True, "inserted": len(events)}


def test_track_stamps_record_and_experiment_context():
    buffer = AnalyticsBuffer(Sink(), "u1", "s1")
    buffer.set_experiment_context("exp_1", "v_b")
    buffer.track("screen_viewed", {"screen_id": "a"})
    record = buffer.pending[0]
    assert record["event"] == "screen_viewed"
    assert record["user_id"] == "u1"
    assert record["session_id"] == "s1"
    assert isinstance(record["timestamp"], int) and record["timestamp"] > 10**12
    assert record["properties"] == {"screen_id": "a", "experiment_id": "exp_1", "variant_id": "v_b"}


def test_batch_size_triggers_flush():
    sink = Sink()
    buffer = AnalyticsBuffer(sink, "u1", "s1", batch_size=2)
    buffer.track("a")
    assert sink.batches == []
    buffer.track("b")
    assert sink.batches == [["a", "b"]]
    assert len(buffer) == 0


def test_failed_flush_requeues_in_order(metrics):
    sink = Sink(failures=1)
    buffer = AnalyticsBuffer(sink, "u1", "s1", batch_size=100, metrics=metrics)
    buffer.track("a")
    buffer.track("b")
    assert buffer.flush() is False
    buffer.track("c")
    assert [e["event"] for e in buffer.pending] == ["a", "b", "c"]
    assert buffer.flush() is True
    assert sink.batches == [["a", "b", "c"]]
    assert metrics.get_flush_counts() == {"failed": 1, "ok": 1}


def test_flush_if_due_uses_interval():
    now = [0.0]
    sink = Sink()
    buffer = AnalyticsBuffer(sink, "u1", "s1", flush_interval=10, clock=lambda: now[0])
    buffer.track("a")
    assert buffer.flush_if_due(5) is False
    assert buffer.flush_if_due(10) is True
    assert sink.batches == [["a"]]


def test_run_periodic_flushes_until_stopped():
    sink = Sink()
    buffer = AnalyticsBuffer(sink, "u1", "s1", flush_interval=0.01)

    async def scenario():
        stop = asyncio.Event()
        task = asyncio.create_task(buffer.run_periodic(stop))
        buffer.track("a")
        await asyncio.sleep(0.05)
        buffer.track("b")
        stop.set()
        await task

    asyncio.run(scenario())
    assert [event for batch in sink.batches for event in batch] == ["a", "b"]


def test_close_flushes():
    sink = Sink()
    buffer = AnalyticsBuffer(sink, "u1", "s1")
    buffer.track("onboarding_completed")
    assert buffer.close() is True
    assert buffer.closed is True
    assert sink.batches == [["onboarding_completed"]]
