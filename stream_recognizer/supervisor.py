"""Supervisor loop for the stream recognizer.

Each iteration resolves the station into a playback plan, then races the work
cycle (capture, fingerprint, recognize, publish) against a watchdog. Whichever
finishes first decides the iteration's outcome; the other is cancelled before
the next iteration starts. The loop never terminates on its own.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from .config import StationTarget
from .errors import (
    FingerprintError,
    PlaylistError,
    RecognitionError,
    TransportFailure,
    WatchdogTimeout,
)
from .gateway import RecognitionGateway, ShazamGateway
from .models import CycleOutcome, OutcomeKind, PlaybackPlan, RecognitionResult
from .playlist_resolver import PlaylistResolver, is_manifest_address
from .result_sink import ResultSink, annotate
from .stream_windower import StreamWindower

logger = logging.getLogger(__name__)


class Supervisor:
    """Watchdog-guarded recognition loop for one station.

    Only the static target and, for direct stream addresses, the resolved plan
    survive between iterations. Network clients and buffers are created inside
    each iteration.
    """

    def __init__(
        self,
        target: StationTarget,
        resolver: PlaylistResolver,
        windower: StreamWindower,
        gateway: RecognitionGateway,
        sink: ResultSink,
        metrics=None,
    ):
        """Initialize the supervisor.

        Args:
            target: Validated station configuration.
            resolver: Playlist resolver.
            windower: Stream windower.
            gateway: Recognition capability.
            sink: Result sink.
            metrics: Optional ``MetricsExporter``.
        """
        self.target = target
        self.resolver = resolver
        self.windower = windower
        self.gateway = gateway
        self.sink = sink
        self.metrics = metrics

        self._reresolve = is_manifest_address(target.station)
        self._cached_plan: Optional[PlaybackPlan] = None

        # Observational state, read by the status API
        self.iterations = 0
        self.stats: Dict[str, int] = {kind.value: 0 for kind in OutcomeKind}
        self.started_at: Optional[float] = None
        self.last_completed_at: Optional[float] = None
        self.last_success_at: Optional[float] = None
        self.last_outcome: Optional[CycleOutcome] = None
        self.last_result: Optional[RecognitionResult] = None
        self.current_budget: float = target.timeout_budget

    @classmethod
    def from_target(
        cls,
        target: StationTarget,
        gateway: Optional[RecognitionGateway] = None,
        metrics=None,
    ) -> "Supervisor":
        """Build a supervisor with the production components."""
        return cls(
            target,
            resolver=PlaylistResolver(target.interval, request_timeout=target.request_timeout),
            windower=StreamWindower(target.stream_file, request_timeout=target.request_timeout),
            gateway=gateway or ShazamGateway(),
            sink=ResultSink(
                target.endpoint, timeout_seconds=target.callback_timeout, debug=target.debug
            ),
            metrics=metrics,
        )

    async def run(self, max_iterations: Optional[int] = None) -> None:
        """Run iterations until cancelled.

        Args:
            max_iterations: Stop after this many iterations; ``None`` runs forever.
        """
        logger.info(f"Starting recognition loop for {self.target.station}")
        if self.started_at is None:
            self.started_at = time.monotonic()

        count = 0
        while max_iterations is None or count < max_iterations:
            await self.run_iteration()
            count += 1

    async def run_iteration(self) -> CycleOutcome:
        """Run one resolve-then-race iteration and record its outcome."""
        if self.started_at is None:
            self.started_at = time.monotonic()
        started = time.monotonic()
        plan: Optional[PlaybackPlan] = None

        try:
            plan = await self._plan()
        except PlaylistError as e:
            outcome = CycleOutcome.failure(OutcomeKind.RESOLUTION_FAILURE, e)
        except TransportFailure as e:
            outcome = CycleOutcome.failure(OutcomeKind.TRANSPORT_FAILURE, e)
        except asyncio.TimeoutError:
            outcome = CycleOutcome.failure(
                OutcomeKind.TRANSPORT_FAILURE,
                TransportFailure(
                    f"Playlist resolution exceeded {self.target.timeout_budget:.1f}s"
                ),
            )
        except Exception as e:
            logger.error(f"Unexpected error resolving {self.target.station}: {e}", exc_info=True)
            outcome = CycleOutcome.failure(OutcomeKind.RESOLUTION_FAILURE, e)
        else:
            outcome = await self._race(plan)

        outcome = self._finish(outcome, started)

        if outcome.ok and plan is not None and plan.segmented:
            await self._pace(plan.duration)

        return outcome

    async def _plan(self) -> PlaybackPlan:
        if not self._reresolve and self._cached_plan is not None:
            return self._cached_plan

        plan = await asyncio.wait_for(
            self.resolver.resolve(self.target.station), timeout=self.target.timeout_budget
        )
        if not self._reresolve:
            self._cached_plan = plan
        return plan

    async def _race(self, plan: PlaybackPlan) -> CycleOutcome:
        """Run the work cycle and the watchdog; the first to finish wins."""
        budget = self.target.budget_for(plan.duration)
        self.current_budget = budget

        work = asyncio.create_task(self._work_cycle(plan), name="work-cycle")
        watchdog = asyncio.create_task(self._watchdog(budget), name="watchdog")
        logger.info("New task spawned")

        try:
            done, _ = await asyncio.wait({work, watchdog}, return_when=asyncio.FIRST_COMPLETED)
            # A finished work cycle wins even if the watchdog fired in the same tick.
            if work in done:
                return work.result()
            logger.warning(f"Task timed out after {budget:.1f}s, aborting work cycle")
            return CycleOutcome.failure(OutcomeKind.TIMED_OUT, WatchdogTimeout(budget))
        finally:
            for task in (work, watchdog):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, watchdog, return_exceptions=True)

    async def _watchdog(self, budget: float) -> None:
        logger.info(f"Waiting for {budget:.1f}s")
        await asyncio.sleep(budget)

    async def _work_cycle(self, plan: PlaybackPlan) -> CycleOutcome:
        """Capture, recognize, annotate and publish once."""
        try:
            window = await self.windower.capture(plan)
            captured_at = datetime.now(timezone.utc)
            if self.metrics:
                self.metrics.update_capture_size(window.size)

            signature = await self.gateway.generate_signature(window.path)
            metadata = await self.gateway.recognize(signature)
            result = annotate(metadata, self.target.station, captured_at)
        except TransportFailure as e:
            return CycleOutcome.failure(OutcomeKind.TRANSPORT_FAILURE, e)
        except (FingerprintError, RecognitionError) as e:
            return CycleOutcome.failure(OutcomeKind.RECOGNITION_FAILURE, e)
        except Exception as e:
            logger.error(f"Unexpected error in work cycle: {e}", exc_info=True)
            return CycleOutcome.failure(OutcomeKind.TRANSPORT_FAILURE, e)

        await self._publish(result)
        return CycleOutcome.success(result)

    async def _publish(self, result: RecognitionResult) -> None:
        try:
            delivered = await self.sink.publish(result)
        except Exception as e:
            logger.error(f"Endpoint error: {e}", exc_info=True)
            delivered = False

        if self.target.endpoint and self.metrics:
            self.metrics.record_publish(delivered)

    async def _pace(self, seconds: float) -> None:
        """Wait out the segment before fetching the manifest again.

        Runs after the race has been decided, outside the watchdog budget.
        """
        await asyncio.sleep(seconds)

    def _finish(self, outcome: CycleOutcome, started: float) -> CycleOutcome:
        now = time.monotonic()
        outcome.elapsed = now - started
        outcome.finished_at = datetime.now(timezone.utc)

        self.iterations += 1
        self.stats[outcome.kind.value] += 1
        self.last_completed_at = now
        self.last_outcome = outcome

        if outcome.ok:
            self.last_success_at = now
            self.last_result = outcome.result
            logger.info(f"Recognized: {outcome.result.describe()}")
        elif outcome.kind == OutcomeKind.TIMED_OUT:
            logger.warning(f"Iteration {self.iterations} timed out: {outcome.cause}")
        else:
            logger.error(f"Error occurred ({outcome.kind.value}): {outcome.cause}")

        if self.metrics:
            self.metrics.record_outcome(outcome.kind.value, outcome.elapsed)

        return outcome
