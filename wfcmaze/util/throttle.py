"""Pacing and cooperative cancellation for long-running generation tasks.

Maze carving and tile collapse are written as coroutines that call
``await throttle.step()`` at their yield points. The throttle keeps the run in
step with a wall-clock budget of ``delay_per_step_ms`` per step: it compares
the time that *should* have passed (``delay * steps``) with the time that
actually passed since ``start()`` and sleeps only the shortfall, so slow steps
are absorbed by faster ones instead of accumulating drift.

Cancellation is cooperative. ``cancel()`` raises a flag and waits for the
running task to notice it at its next ``step()``; the task then raises
``GenerationCanceled``, which the generator catches at its own boundary and
turns into a normal early return. Generators call ``start()`` synchronously
when a run is created, before its coroutine is first scheduled, so a cancel
requested immediately after scheduling is not lost.

One ``Throttle`` drives one task at a time. Give the maze generator and the
collapse engine separate instances when both may run concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import time

from wfcmaze import config
from wfcmaze.types import StepDelayMs

logger = logging.getLogger(__name__)


class GenerationCanceled(Exception):
    """Raised at a yield point after cancellation was requested."""


def delay_for_animation_speed(
    animation_speed: float, steepness: float = config.ANIMATION_SPEED_STEEPNESS
) -> StepDelayMs:
    """Convert a UI animation speed in [1, 1000] to milliseconds per step.

    The curve is exponential so the upper end of a slider gives fine control
    over very short delays. Speed 1000 maps to (almost) zero.
    """
    normalized_speed = animation_speed / 1000
    delay = (
        1.00001 - (steepness**normalized_speed - 1) / (steepness - 1)
    ) * 1000 - 0.009
    return StepDelayMs(max(0.0, delay))


class Throttle:
    """Per-task pacing state: start timestamp, step counter and cancel flag."""

    def __init__(
        self,
        delay_per_step_ms: float = config.DEFAULT_DELAY_PER_STEP_MS,
        *,
        name: str = "generation",
    ) -> None:
        if delay_per_step_ms < 0:
            raise ValueError(f"delay_per_step_ms must be >= 0, got {delay_per_step_ms}")
        self.name = name
        self.is_processing = False
        self.cancel_requested = False
        self.process_start = time.perf_counter()
        self.steps_taken = 0
        self._delay_per_step_ms = StepDelayMs(float(delay_per_step_ms))

    @property
    def delay_per_step_ms(self) -> StepDelayMs:
        return self._delay_per_step_ms

    @delay_per_step_ms.setter
    def delay_per_step_ms(self, value: float) -> None:
        """Change the pace, re-pricing the steps already taken at the new rate.

        Shifting the start timestamp by ``steps * (old - new)`` keeps the
        current lead or lag unchanged, so the next step neither bursts nor
        stalls.
        """
        if value < 0:
            raise ValueError(f"delay_per_step_ms must be >= 0, got {value}")
        old = self._delay_per_step_ms
        self._delay_per_step_ms = StepDelayMs(float(value))
        if self.is_processing:
            self.process_start += self.steps_taken * (old - value) / 1000
            logger.debug(
                f"{self.name}: delay {old:.3f}ms -> {value:.3f}ms "
                f"rebased after {self.steps_taken} steps"
            )

    def set_animation_speed(self, animation_speed: float) -> None:
        """Set the pace from a UI animation speed (see ``delay_for_animation_speed``)."""
        self.delay_per_step_ms = delay_for_animation_speed(animation_speed)

    @property
    def elapsed(self) -> float:
        """Seconds since the current (or last) run started."""
        return time.perf_counter() - self.process_start

    def start(self) -> None:
        """Mark a run as active and reset pacing."""
        if self.is_processing:
            raise RuntimeError(f"{self.name} is already processing")
        self.is_processing = True
        self.cancel_requested = False
        self.process_start = time.perf_counter()
        self.steps_taken = 0

    def finish(self) -> None:
        """Mark the run as inactive. Safe to call more than once."""
        self.is_processing = False
        self.cancel_requested = False

    async def step(self) -> None:
        """Yield point: count a step, honour cancellation, sleep any shortfall.

        Outside an active run this does nothing, so the engine can also be
        driven step-by-step without pacing.

        Raises:
            GenerationCanceled: if ``request_cancel()`` was called since the
                previous step.
        """
        if not self.is_processing:
            return

        self.steps_taken += 1

        if self.cancel_requested:
            self.cancel_requested = False
            self.is_processing = False
            logger.warning(f"{self.name} canceled after {self.steps_taken} steps")
            raise GenerationCanceled(f"{self.name} was canceled")

        expected = self._delay_per_step_ms * self.steps_taken / 1000
        shortfall = expected - (time.perf_counter() - self.process_start)
        if shortfall > 0:
            await asyncio.sleep(shortfall)
        elif self.steps_taken % config.IDLE_YIELD_STEPS == 0:
            # Unpaced runs still let other tasks (e.g. a pending cancel) in.
            await asyncio.sleep(0)

    def request_cancel(self) -> None:
        """Ask the running task to stop at its next yield point."""
        if self.is_processing:
            self.cancel_requested = True

    async def cancel(self) -> None:
        """Request cancellation and wait until the running task has stopped."""
        self.request_cancel()
        while self.is_processing:
            await asyncio.sleep(config.CANCEL_POLL_INTERVAL_S)
