import asyncio
import unittest

from narrative_core import CommandOutcome, NarrativeState
from narrative_engine import NarrativeSession, TickScheduler
from narrative_engine.story import StoryEngine


class CountdownStory(StoryEngine):
    """Ends on its fifth tick."""

    slug = "countdown"

    def initial_state(self):
        return NarrativeState(story=self.slug)

    def advance(self, state, dt, rng):
        state = state.with_clock(dt)
        return state.mark_terminal() if state.tick_count >= 5 else state

    def apply(self, state, command, payload=None):
        return state

    def interpret(self, state, text):
        return CommandOutcome(state=state)


class TickSchedulerTest(unittest.IsolatedAsyncioTestCase):
    async def test_runs_until_terminal(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)
        seen = []

        async def on_tick(record):
            seen.append(record.tick)

        scheduler = TickScheduler(session, interval=0, on_tick=on_tick)
        scheduler.start()
        await asyncio.wait_for(scheduler.wait(), timeout=5)

        self.assertTrue(session.terminal)
        self.assertEqual(seen, [1, 2, 3, 4, 5])
        self.assertFalse(scheduler.running)

    async def test_start_is_idempotent(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)
        scheduler = TickScheduler(session, interval=0)
        first = scheduler.start()
        self.assertIs(scheduler.start(), first)
        await asyncio.wait_for(scheduler.wait(), timeout=5)

    async def test_stop_cancels_pending_tick(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)
        scheduler = TickScheduler(session, interval=60)
        scheduler.start()
        await asyncio.sleep(0)
        await scheduler.stop()

        self.assertFalse(scheduler.running)
        self.assertEqual(session.snapshot.tick_count, 0)
        await scheduler.stop()

    async def test_callback_failure_does_not_stop_ticking(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)

        async def bad_callback(record):
            raise RuntimeError("boom")

        scheduler = TickScheduler(session, interval=0, on_tick=bad_callback)
        scheduler.start()
        await asyncio.wait_for(scheduler.wait(), timeout=5)
        self.assertTrue(session.terminal)

    async def test_custom_dt(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)
        scheduler = TickScheduler(session, interval=0, dt=2.5)
        scheduler.start()
        await asyncio.wait_for(scheduler.wait(), timeout=5)
        self.assertEqual(session.snapshot.elapsed, 12.5)

    def test_rejects_negative_interval(self) -> None:
        session = NarrativeSession(CountdownStory(), seed=0)
        with self.assertRaises(ValueError):
            TickScheduler(session, interval=-1)


if __name__ == "__main__":
    unittest.main()
