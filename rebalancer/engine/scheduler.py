"""Fixed-interval scheduling of rebalancing cycles."""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from rebalancer.core.models import CycleReport, InterestSnapshot, RunRecord
from rebalancer.engine.orchestrator import RebalanceOrchestrator
from rebalancer.engine.weights import WeightSelector
from rebalancer.persistence.storage import RunRecordStorage

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class RebalanceScheduler:
    """
    Runs one cycle at a time on a fixed interval.

    The interval is measured from the start of each cycle, and the next cycle
    is only eligible once the previous one has fully completed, so cycles
    never overlap. The interest snapshot returned by each cycle is threaded
    into the next; a failed cycle leaves it unchanged.
    """

    def __init__(
        self,
        orchestrator: RebalanceOrchestrator,
        selector: WeightSelector,
        interval_seconds: float,
        storage: Optional[RunRecordStorage] = None,
        snapshot: Optional[InterestSnapshot] = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.orchestrator = orchestrator
        self.selector = selector
        self.interval_seconds = interval_seconds
        self.storage = storage
        self._snapshot = snapshot or InterestSnapshot()
        self._sleep = sleep
        self._clock = clock
        self._stopped = False

    @property
    def snapshot(self) -> InterestSnapshot:
        return self._snapshot

    def stop(self) -> None:
        """Stop after the current cycle completes; before ``run()`` it prevents any cycle."""
        self._stopped = True

    async def run_once(self) -> Optional[CycleReport]:
        """Select weights and run a single cycle.

        Returns:
            The cycle report, or None if the cycle failed before completing
        """
        try:
            decision = await self.selector.select()
        except Exception as e:
            logger.exception(f"Weight selection failed, skipping cycle: {e}")
            return None

        report = None
        try:
            report = await self.orchestrator.run_cycle(decision.weights, self._snapshot)
        except Exception as e:
            logger.exception(f"Cycle failed: {e}")

        if report is not None:
            self._snapshot = report.snapshot
            logger.info(
                f"Cycle {report.status.value}: {len(report.outcomes)} instruction(s), "
                f"{len(report.deposits)} deposit(s)"
            )
        if self.storage is not None:
            self.storage.save(RunRecord(decision=decision, report=report))
        return report

    async def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Run cycles until stopped or ``max_cycles`` is reached.

        Returns:
            Number of cycles run
        """
        cycles = 0
        while not self._stopped:
            started = self._clock()
            await self.run_once()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            remaining = self.interval_seconds - (self._clock() - started)
            if remaining > 0 and not self._stopped:
                logger.debug(f"Next cycle in {remaining:.0f}s")
                await self._sleep(remaining)
        return cycles
