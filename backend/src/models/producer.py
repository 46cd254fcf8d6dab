import asyncio
import random
from typing import Callable, Optional

import structlog

from models.models import BroadcastHub
from schemas import ScoreData
from utilities import SCORE_PROBABILITY, TICK_INTERVAL, ProducerError

logger = structlog.get_logger()

Transition = Callable[[ScoreData], ScoreData]


def random_score_step(probability: float = SCORE_PROBABILITY, rng: Optional[random.Random] = None) -> Transition:
    """Each team independently scores one point with the given probability."""
    rng = rng or random.Random()

    def step(current: ScoreData) -> ScoreData:
        team1 = current.score.team1
        team2 = current.score.team2
        if rng.random() < probability:
            team1 += 1
        if rng.random() < probability:
            team2 += 1
        return ScoreData.of(team1, team2)

    return step


class StateStore:
    ''' Latest published value. Only the producer reads or writes it.'''

    def __init__(self, initial: Optional[ScoreData] = None):
        self.value = initial if initial is not None else ScoreData()


class Producer:
    ''' Single writer: advances the state on a fixed cadence and publishes it.'''

    def __init__(
        self,
        hub: BroadcastHub,
        transition: Optional[Transition] = None,
        interval: float = TICK_INTERVAL,
        initial: Optional[ScoreData] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.hub = hub
        self.transition = transition or random_score_step()
        self.interval = interval
        self.store = StateStore(initial)
        self.ticks = 0
        self.running = False

    def tick(self) -> ScoreData:
        """Advance one step and publish, whether or not anyone is listening."""
        value = self.transition(self.store.value)
        self.store.value = value
        self.ticks += 1
        self.hub.publish(value)
        return value

    async def run(self):
        """Tick at a fixed rate until stop() or cancellation.

        Any exception from a tick is fatal and surfaces as ProducerError.
        """
        loop = asyncio.get_running_loop()
        self.running = True
        next_at = loop.time()
        logger.info("producer.started", interval=self.interval)
        try:
            while self.running:
                next_at += self.interval
                await asyncio.sleep(max(0.0, next_at - loop.time()))
                if not self.running:
                    break
                try:
                    self.tick()
                except Exception as e:
                    logger.exception("producer.crashed", ticks=self.ticks)
                    raise ProducerError(f"producer tick {self.ticks + 1} failed: {e}") from e
        finally:
            self.running = False
            logger.info("producer.stopped", ticks=self.ticks)

    def stop(self):
        self.running = False
