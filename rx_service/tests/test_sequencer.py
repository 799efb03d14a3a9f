"""Tests for the task sequencer."""
import asyncio

from rx_service.outcome import Outcome
from rx_service.sequencer import TaskSequencer


class RecordingSleep:
    def __init__(self, events: list):
        self.events = events

    async def __call__(self, seconds: float):
        self.events.append(("sleep", seconds))


class TestTaskSequencer:
    def test_delay_between_tasks_not_after_last(self):
        events = []
        sequencer = TaskSequencer(0.2, sleep=RecordingSleep(events))

        async def task(name):
            events.append(("task", name))
            return name

        async def run():
            return [await sequencer.run(task, n) for n in ("a", "b", "c")]

        assert asyncio.run(run()) == ["a", "b", "c"]
        assert events == [
            ("task", "a"),
            ("sleep", 0.2),
            ("task", "b"),
            ("sleep", 0.2),
            ("task", "c"),
        ]
        assert sequencer.calls == 3

    def test_single_task_never_sleeps(self):
        events = []
        sequencer = TaskSequencer(1.0, sleep=RecordingSleep(events))

        async def task():
            return 42

        assert asyncio.run(sequencer.run(task)) == 42
        assert events == []

    def test_zero_delay_never_sleeps(self):
        events = []
        sequencer = TaskSequencer(0, sleep=RecordingSleep(events))

        async def task():
            return None

        async def run():
            await sequencer.run(task)
            await sequencer.run(task)

        asyncio.run(run())
        assert events == []

    def test_concurrent_submissions_run_one_at_a_time(self):
        active = []
        max_active = []
        sequencer = TaskSequencer(0, sleep=RecordingSleep([]))

        async def task(i):
            active.append(i)
            max_active.append(len(active))
            await asyncio.sleep(0)
            active.remove(i)
            return i

        async def run():
            return await asyncio.gather(*(sequencer.run(task, i) for i in range(5)))

        assert asyncio.run(run()) == [0, 1, 2, 3, 4]
        assert max(max_active) == 1

    def test_error_propagates_and_queue_continues(self):
        sequencer = TaskSequencer(0, sleep=RecordingSleep([]))

        async def boom():
            raise RuntimeError("backend down")

        async def ok():
            return "ok"

        async def run():
            try:
                await sequencer.run(boom)
            except RuntimeError as e:
                first = str(e)
            return first, await sequencer.run(ok)

        assert asyncio.run(run()) == ("backend down", "ok")


class TestOutcome:
    def test_success(self):
        outcome = Outcome.success("text")
        assert outcome.value == "text"
        assert not outcome.degraded
        assert outcome.reason is None

    def test_fallback(self):
        outcome = Outcome.fallback("original", "chunk 1: timeout")
        assert outcome.value == "original"
        assert outcome.degraded
        assert outcome.reason == "chunk 1: timeout"
