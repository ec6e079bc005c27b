"""Fixed-cadence sampling loop."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from dmmlog.core.instrument import Instrument
from dmmlog.core.model import UNLIMITED_SAMPLES, RunSummary, Sample, SchedulePlan
from dmmlog.core.scheduler import Decision, Scheduler
from dmmlog.output.base import ProgressIndicator, SampleSink

LOGGER = logging.getLogger(__name__)


def run(
    instrument: Instrument,
    sink: SampleSink,
    *,
    period: float,
    scheduler: Scheduler,
    count: int = UNLIMITED_SAMPLES,
    drop_slow: bool = False,
    progress: ProgressIndicator | None = None,
    wall_clock: Callable[[], datetime] = datetime.now,
) -> RunSummary:
    """Take ``count`` samples at ``period`` seconds apart.

    The first sample is read immediately and anchors the schedule. With
    ``drop_slow`` a tick that is already overdue, or whose read took at least
    one period, is replaced by a comment and still consumes its sequence
    number. Device and transport errors propagate; nothing is written for the
    failing tick.
    """
    timestamp = wall_clock()
    first = instrument.timed_read()
    plan = SchedulePlan(start=first.captured_at, period=period, count=count)

    sink.write_sample(
        Sample(
            sequence=0,
            timestamp=timestamp,
            captured_at=first.captured_at,
            moment=0.0,
            delay=0.0,
            latency=first.latency,
            value=first.value,
        )
    )
    if progress is not None:
        progress.update(first.value)

    taken, skipped, discarded = 1, 0, 0

    for sequence in range(1, plan.count):
        planned = plan.instant(sequence)

        if drop_slow:
            overrun = scheduler.now() - planned
            if overrun >= 0:
                LOGGER.warning("Sample #%d skipped, %.6f s behind schedule", sequence, overrun)
                sink.write_comment(f"Sample #{sequence} skipped, behind schedule by {overrun} s")
                skipped += 1
                continue

        if scheduler.wait_until(planned) is Decision.CANCELLED:
            LOGGER.info("Run cancelled before sample #%d", sequence)
            return RunSummary(taken=taken, skipped=skipped, discarded=discarded, cancelled=True)

        timestamp = wall_clock()
        reading = instrument.timed_read()

        if drop_slow and reading.latency >= period:
            LOGGER.warning(
                "Sample #%d discarded, latency %.6f s exceeds period %.6f s",
                sequence,
                reading.latency,
                period,
            )
            sink.write_comment(
                f"Sample #{sequence} discarded, read latency {reading.latency} s "
                f"exceeds sampling period {period} s"
            )
            discarded += 1
            continue

        sink.write_sample(
            Sample(
                sequence=sequence,
                timestamp=timestamp,
                captured_at=reading.captured_at,
                moment=reading.captured_at - plan.start,
                delay=reading.captured_at - planned,
                latency=reading.latency,
                value=reading.value,
            )
        )
        if progress is not None:
            progress.update(reading.value)
        taken += 1

    return RunSummary(taken=taken, skipped=skipped, discarded=discarded, cancelled=False)
