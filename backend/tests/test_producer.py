"""Producer tests: state transitions, cadence, failure."""

import asyncio
import random

import pytest

from conftest import wait_until
from models import BroadcastHub, Producer, random_score_step
from schemas import ScoreData
from utilities import ProducerError


def _team1_scores(current: ScoreData) -> ScoreData:
    return ScoreData.of(current.score.team1 + 1, current.score.team2)


def test_tick_publishes_next_value():
    hub = BroadcastHub()
    sub = hub.subscribe()
    producer = Producer(hub, transition=_team1_scores)
    assert producer.tick() == ScoreData.of(1, 0)
    assert producer.tick() == ScoreData.of(2, 0)
    assert sub.drain() == [ScoreData.of(1, 0), ScoreData.of(2, 0)]
    assert producer.ticks == 2


def test_tick_without_subscribers_still_advances():
    hub = BroadcastHub()
    producer = Producer(hub, transition=_team1_scores)
    producer.tick()
    producer.tick()
    assert producer.store.value == ScoreData.of(2, 0)
    sub = hub.subscribe()
    producer.tick()
    assert sub.drain() == [ScoreData.of(3, 0)]


def test_initial_value():
    producer = Producer(BroadcastHub(), transition=_team1_scores, initial=ScoreData.of(5, 5))
    assert producer.tick() == ScoreData.of(6, 5)


def test_invalid_interval():
    with pytest.raises(ValueError):
        Producer(BroadcastHub(), interval=0)


def test_random_score_step_extremes():
    never = random_score_step(probability=0.0)
    always = random_score_step(probability=1.0)
    start = ScoreData.of(2, 3)
    assert never(start) == start
    assert always(start) == ScoreData.of(3, 4)


def test_random_score_step_is_monotonic_and_seedable():
    a = random_score_step(rng=random.Random(42))
    b = random_score_step(rng=random.Random(42))
    va = vb = ScoreData()
    for _ in range(50):
        nxt = a(va)
        assert nxt.score.team1 - va.score.team1 in (0, 1)
        assert nxt.score.team2 - va.score.team2 in (0, 1)
        va, vb = nxt, b(vb)
    assert va == vb


@pytest.mark.asyncio
async def test_run_ticks_until_stopped():
    hub = BroadcastHub(queue_size=100)
    sub = hub.subscribe()
    producer = Producer(hub, transition=_team1_scores, interval=0.005)
    task = asyncio.create_task(producer.run())
    await wait_until(lambda: producer.ticks >= 3)
    producer.stop()
    await asyncio.wait_for(task, 1)
    assert not producer.running
    received = sub.drain()
    assert [v.score.team1 for v in received] == list(range(1, producer.ticks + 1))


@pytest.mark.asyncio
async def test_run_is_cancellable():
    producer = Producer(BroadcastHub(), transition=_team1_scores, interval=10)
    task = asyncio.create_task(producer.run())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert not producer.running
    assert producer.ticks == 0


@pytest.mark.asyncio
async def test_failing_transition_raises_producer_error():
    def broken(current):
        raise KeyError("boom")

    producer = Producer(BroadcastHub(), transition=broken, interval=0.001)
    with pytest.raises(ProducerError) as exc_info:
        await asyncio.wait_for(producer.run(), 1)
    assert isinstance(exc_info.value.__cause__, KeyError)
    assert not producer.running
