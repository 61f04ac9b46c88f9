"""
Charge Cycle Segmentation Service

Split a measurement history into charge/discharge segments on state
transitions.
"""

from typing import List, Optional, Sequence

from batmon.calculations.constants import MIN_CYCLE_SAMPLES
from batmon.models import ChargeCycle, Measurement
from batmon.utils.time_utils import parse_timestamp


class _OpenCycle:
    """Mutable segment under construction; frozen into a ChargeCycle when closed."""

    def __init__(self, start_time, start_percent, cycle_type):
        self.start_time = start_time
        self.start_percent = start_percent
        self.cycle_type = cycle_type
        self.end_time = start_time
        self.end_percent = start_percent
        self.capacity_loss = 0

    def close(self) -> ChargeCycle:
        return ChargeCycle(
            start_time=self.start_time,
            end_time=self.end_time,
            start_percent=self.start_percent,
            end_percent=self.end_percent,
            cycle_type=self.cycle_type,
            capacity_loss=self.capacity_loss,
        )


def detect_charge_cycles(measurements: Sequence[Measurement]) -> List[ChargeCycle]:
    """
    Segment a history into charge/discharge cycles.

    The first sample opens the initial segment. After that a new segment
    opens whenever a sample's state differs from the previous sample's; its
    type is the new state, lower-cased. Every sample extends
    the open segment, so a closed segment ends at the last sample before the
    next transition. On close the capacity loss is the previous sample's
    current capacity minus the transition sample's, when both are known.
    The first sample is never a transition, samples with unparseable
    timestamps are skipped, and the last open segment is flushed at the end.

    Args:
        measurements: Chronologically ascending history

    Returns:
        Segments in chronological order (empty for fewer than 3 samples)
    """
    if len(measurements) < MIN_CYCLE_SAMPLES:
        return []

    cycles = []
    current: Optional[_OpenCycle] = None

    for i, m in enumerate(measurements):
        timestamp = parse_timestamp(m.timestamp)
        if timestamp is None:
            continue

        if current is None:
            current = _OpenCycle(timestamp, m.percentage, m.state.lower())
            continue

        prev = measurements[i - 1]
        if prev.state != m.state:
            if prev.current_capacity > 0 and m.current_capacity > 0:
                current.capacity_loss = prev.current_capacity - m.current_capacity
            cycles.append(current.close())
            current = _OpenCycle(timestamp, m.percentage, m.state.lower())

        current.end_time = timestamp
        current.end_percent = m.percentage

    if current is not None:
        cycles.append(current.close())

    return cycles
